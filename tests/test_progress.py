from __future__ import annotations

import json

import pytest

from jsonfill.errors import MarkerNotFoundError
from jsonfill.progress import PromptAssembler, install, next_index, resolve, serialize_until
from tests.utils import with_marker

pytestmark = [pytest.mark.unit]

MARKER = "|GENERATION|"


def _cut_at_marker(tree, path) -> str:
    text = json.dumps(with_marker(tree, path, MARKER))
    return text[: text.index(f'"{MARKER}"')]


@pytest.mark.parametrize(
    "tree, path",
    [
        ({}, ("name",)),
        ({"name": "Alice"}, ("age",)),
        ({"name": "Alice", "age": 30.0}, ("is_student",)),
        ({"tags": []}, ("tags", 0)),
        ({"tags": ["a", "b"]}, ("tags", 2)),
        ({"a": {"b": [1.0, {"c": True}]}}, ("a", "b", 1, "d")),
        ({"a": [[1.0], []]}, ("a", 1, 0)),
        ({"quote": 'say "hi"', "é": "ü"}, ("next",)),
    ],
)
def test_serialize_until_matches_marker_truncation(tree, path) -> None:
    assert serialize_until(tree, path) == _cut_at_marker(tree, path)


def test_pending_property_keeps_its_key() -> None:
    assert serialize_until({"a": 1.0}, ("x",)) == '{"a": 1.0, "x": '


def test_pending_array_elements() -> None:
    assert serialize_until({"tags": []}, ("tags", 0)) == '{"tags": ['
    assert serialize_until({"tags": ["a"]}, ("tags", 1)) == '{"tags": ["a", '


def test_existing_slot_truncates_before_its_value() -> None:
    tree = {"a": 1.0, "b": 2.0, "c": 3.0}
    assert serialize_until(tree, ("b",)) == '{"a": 1.0, "b": '


@pytest.mark.parametrize(
    "tree, path",
    [
        ({}, ()),
        ({}, ("missing", "child")),
        ({"tags": []}, ("tags", 1)),
        ({"tags": ["a"]}, ("tags", "0")),
        ({"name": "Alice"}, ("name", "first")),
    ],
)
def test_unresolvable_paths_raise(tree, path) -> None:
    with pytest.raises(MarkerNotFoundError):
        serialize_until(tree, path)


def test_install_assigns_keys_and_appends_to_arrays() -> None:
    tree: dict = {}
    install(tree, ("tags",), [])
    install(tree, ("tags", 0), "a")
    install(tree, ("tags", 1), "b")
    install(tree, ("name",), "Alice")

    assert tree == {"tags": ["a", "b"], "name": "Alice"}
    assert resolve(tree, ("tags", 1)) == "b"
    assert next_index(tree, ("tags",)) == ("tags", 2)


@pytest.mark.parametrize("index", [0, 3, -1])
def test_install_never_overwrites_or_skips_array_slots(index) -> None:
    tree = {"tags": ["a"]}
    with pytest.raises(MarkerNotFoundError):
        install(tree, ("tags", index), "b")
    assert tree == {"tags": ["a"]}


def test_next_index_requires_an_array() -> None:
    with pytest.raises(MarkerNotFoundError):
        next_index({"name": "Alice"}, ("name",))


def test_prompt_assembler_renders_template() -> None:
    schema = {"type": "object", "properties": {"name": {"type": "string"}}}
    assembler = PromptAssembler("Describe {someone}", schema)

    prompt = assembler.build({}, ("name",))

    assert prompt == (
        "Describe {someone}\n"
        "Output result in the following JSON schema format:\n"
        f"{json.dumps(schema)}\n"
        'Result: {"name": '
    )
