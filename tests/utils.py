from __future__ import annotations

from collections import deque
from types import SimpleNamespace
from typing import Any, Iterable, Sequence

import torch

TRUE_ID = 256
FALSE_ID = 257
VOCAB_SIZE = 258


class TestTokenizer:
    """Character-level tokenizer: ids 0-255 are single characters, plus whole-word ``true``/``false``."""

    __test__ = False

    eos_token_id = 0

    _words = {"true": TRUE_ID, "false": FALSE_ID}

    def __len__(self) -> int:
        return VOCAB_SIZE

    def get_vocab(self) -> dict[str, int]:
        vocab = {chr(i): i for i in range(256)}
        vocab.update(self._words)
        return vocab

    def convert_tokens_to_ids(self, token: str) -> int:
        if token in self._words:
            return self._words[token]
        return ord(token)

    def token_id(self, text: str) -> int:
        return self.convert_tokens_to_ids(text)

    def encode(self, text: str, return_tensors: str | None = None, add_special_tokens: bool = False) -> Any:
        ids = [ord(ch) if ord(ch) < 256 else ord("?") for ch in text]
        if return_tensors == "pt":
            return torch.tensor([ids], dtype=torch.long)
        return ids

    def decode(self, tokens: Any, skip_special_tokens: bool = False) -> str:
        if isinstance(tokens, torch.Tensor):
            tokens = tokens.reshape(-1).tolist()
        elif isinstance(tokens, int):
            tokens = [tokens]
        parts: list[str] = []
        for t in tokens:
            t = int(t)
            if t == self.eos_token_id and skip_special_tokens:
                continue
            if t == TRUE_ID:
                parts.append("true")
            elif t == FALSE_ID:
                parts.append("false")
            else:
                parts.append(chr(t))
        return "".join(parts)


class StubModel:
    """Deterministic stand-in for a causal LM.

    ``generate`` appends the next scripted continuation to the prompt tokens.
    ``forward`` returns logits where the next scripted ranking (token texts,
    best first) scores highest; every other token scores lower, with control
    characters 1-30 slightly ahead of the rest so top-k probes never pick up a
    separator by accident.
    """

    def __init__(
        self,
        tokenizer: TestTokenizer,
        continuations: Iterable[str] = (),
        rankings: Iterable[Sequence[str]] = (),
        default_ranking: Sequence[str] | None = None,
    ) -> None:
        self.tokenizer = tokenizer
        self.device = torch.device("cpu")
        self.continuations = deque(continuations)
        self.rankings = deque(rankings)
        self.default_ranking = default_ranking
        self.generate_calls: list[dict[str, Any]] = []
        self.forward_prompts: list[str] = []

    @property
    def calls(self) -> int:
        return len(self.generate_calls) + len(self.forward_prompts)

    def generate(self, input_ids: torch.Tensor, **kwargs: Any) -> torch.Tensor:
        self.generate_calls.append({"prompt": self.tokenizer.decode(input_ids[0]), **kwargs})
        assert self.continuations, "StubModel ran out of scripted continuations"
        continuation = self.tokenizer.encode(self.continuations.popleft(), return_tensors="pt")
        return torch.cat([input_ids, continuation], dim=1)

    def forward(self, input_ids: torch.Tensor) -> SimpleNamespace:
        self.forward_prompts.append(self.tokenizer.decode(input_ids[0]))
        if self.rankings:
            ranking = self.rankings.popleft()
        else:
            assert self.default_ranking is not None, "StubModel ran out of scripted rankings"
            ranking = self.default_ranking

        row = torch.full((VOCAB_SIZE,), -10.0)
        row[1:31] = -5.0
        for rank, text in enumerate(ranking):
            row[self.tokenizer.token_id(text)] = 100.0 - rank
        logits = row.repeat(input_ids.shape[1], 1).unsqueeze(0)
        return SimpleNamespace(logits=logits)

    __call__ = forward


def with_marker(tree: Any, path: Sequence[Any], marker: str = "|GENERATION|") -> Any:
    """Copy of ``tree`` with ``marker`` placed at ``path`` (appending for a new array slot)."""
    import copy

    out = copy.deepcopy(tree)
    node = out
    for step in path[:-1]:
        node = node[step]
    last = path[-1]
    if isinstance(node, list) and last == len(node):
        node.append(marker)
    else:
        node[last] = marker
    return out
