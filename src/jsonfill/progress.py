"""
Prompt assembly over a partially generated JSON value.

The value the model is about to fill is addressed by a cursor: the path of
object keys and array indices from the root of the output tree. The pending
value itself is never stored in the tree. Serializing "up to the cursor"
yields the same text as dumping the tree with a placeholder at that position
and cutting the dump right before the placeholder, e.g. ``{"name": "Alice",
"age": `` for a pending ``age`` property.
"""

from __future__ import annotations

import json
from typing import Any, Mapping, Sequence, Union

from .errors import MarkerNotFoundError

PathStep = Union[str, int]
Path = tuple[PathStep, ...]

DEFAULT_TEMPLATE = (
    "{prompt}\n"
    "Output result in the following JSON schema format:\n"
    "{schema}\n"
    "Result: {progress}"
)


def _is_index(step: Any) -> bool:
    return isinstance(step, int) and not isinstance(step, bool)


def resolve(tree: Any, path: Sequence[PathStep]) -> Any:
    """Return the value stored at ``path``."""
    node = tree
    for step in path:
        if isinstance(node, dict) and isinstance(step, str) and step in node:
            node = node[step]
        elif isinstance(node, list) and _is_index(step) and 0 <= step < len(node):
            node = node[step]
        else:
            raise MarkerNotFoundError(tuple(path))
    return node


def install(tree: Any, path: Sequence[PathStep], item: Any) -> Any:
    """Store ``item`` at ``path`` and return it.

    Object slots are assigned by key. Array slots only grow by appending, so
    the last step of an array path must equal the current array length.
    """
    if not path:
        raise MarkerNotFoundError(tuple(path), "Cannot install a value at the root of the output tree")
    parent = resolve(tree, path[:-1])
    step = path[-1]
    if isinstance(parent, dict) and isinstance(step, str):
        parent[step] = item
    elif isinstance(parent, list) and _is_index(step) and step == len(parent):
        parent.append(item)
    else:
        raise MarkerNotFoundError(tuple(path))
    return item


def next_index(tree: Any, array_path: Sequence[PathStep]) -> Path:
    """Cursor for one more element appended to the array at ``array_path``."""
    array = resolve(tree, array_path)
    if not isinstance(array, list):
        raise MarkerNotFoundError(tuple(array_path), f"Expected an array at path {list(array_path)!r}")
    return tuple(array_path) + (len(array),)


def serialize_until(tree: Any, path: Sequence[PathStep]) -> str:
    """Serialize ``tree`` as JSON, stopping right where the value at ``path`` would start."""
    path = tuple(path)
    if not path:
        raise MarkerNotFoundError(path, "Generation path is empty")
    out: list[str] = []
    node = tree
    for depth, step in enumerate(path):
        last = depth == len(path) - 1
        if isinstance(node, dict) and isinstance(step, str):
            keys = list(node)
            if step in node:
                position = keys.index(step)
            elif last:
                position = len(keys)
            else:
                raise MarkerNotFoundError(path)
            out.append("{")
            for key in keys[:position]:
                out.append(f"{json.dumps(key)}: {json.dumps(node[key])}, ")
            out.append(f"{json.dumps(step)}: ")
        elif isinstance(node, list) and _is_index(step):
            if not (0 <= step < len(node) or (last and step == len(node))):
                raise MarkerNotFoundError(path)
            out.append("[")
            for item in node[:step]:
                out.append(f"{json.dumps(item)}, ")
        else:
            raise MarkerNotFoundError(path)
        if not last:
            node = node[step]
    return "".join(out)


class PromptAssembler:
    """Renders the prompt for the next generation step."""

    def __init__(
        self,
        prompt: str,
        schema: Mapping[str, Any],
        template: str = DEFAULT_TEMPLATE,
    ) -> None:
        self.prompt = prompt
        self.template = template
        self.schema_text = json.dumps(schema)

    def build(self, tree: Any, path: Sequence[PathStep]) -> str:
        return self.template.format(
            prompt=self.prompt,
            schema=self.schema_text,
            progress=serialize_until(tree, path),
        )


__all__ = [
    "DEFAULT_TEMPLATE",
    "Path",
    "PathStep",
    "PromptAssembler",
    "install",
    "next_index",
    "resolve",
    "serialize_until",
]
