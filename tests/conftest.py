from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
SRC_PATH = PROJECT_ROOT / "src"
for p in (PROJECT_ROOT, SRC_PATH):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))

from jsonfill import JsonFiller  # noqa: E402
from tests.utils import StubModel, TestTokenizer  # noqa: E402


@pytest.fixture
def tokenizer() -> TestTokenizer:
    return TestTokenizer()


@pytest.fixture
def make_filler(tokenizer: TestTokenizer) -> Callable[..., tuple[JsonFiller, StubModel]]:
    def factory(
        schema: dict[str, Any],
        *,
        continuations=(),
        rankings=(),
        default_ranking=None,
        prompt: str = "Generate a person's information",
        **kwargs: Any,
    ) -> tuple[JsonFiller, StubModel]:
        model = StubModel(
            tokenizer,
            continuations=continuations,
            rankings=rankings,
            default_ranking=default_ranking,
        )
        return JsonFiller(model, tokenizer, schema, prompt, **kwargs), model

    return factory
