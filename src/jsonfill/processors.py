"""
Stopping criteria and logits processors handed to ``model.generate``.

They keep number and string continuations short: generation stops as soon as
a string literal is closed or a number is complete, and number sampling is
restricted to digit/period tokens.
"""

from __future__ import annotations

from typing import Any

import torch
from transformers import LogitsProcessor, StoppingCriteria

_NUMBER_CHARS = frozenset("0123456789.")


def _stop(input_ids: torch.LongTensor, value: bool) -> torch.BoolTensor:
    return torch.full((input_ids.shape[0],), bool(value), dtype=torch.bool, device=input_ids.device)


def is_number_fragment(text: str) -> bool:
    text = text.strip()
    if text == "":
        return True
    return all(c in _NUMBER_CHARS for c in text) and text.count(".") <= 1


class StringStoppingCriteria(StoppingCriteria):
    """Stop once the most recent token closes the string literal."""

    def __init__(self, tokenizer: Any, prompt_length: int) -> None:
        self.tokenizer = tokenizer
        self.prompt_length = prompt_length

    def __call__(self, input_ids: torch.LongTensor, scores: torch.FloatTensor, **kwargs: Any) -> torch.BoolTensor:
        if input_ids.shape[1] <= self.prompt_length:
            return _stop(input_ids, False)
        last_token = self.tokenizer.decode(int(input_ids[0][-1]), skip_special_tokens=True)
        return _stop(input_ids, '"' in last_token)


class NumberStoppingCriteria(StoppingCriteria):
    """Stop once the continuation can no longer extend a number with ``precision`` decimals."""

    def __init__(self, tokenizer: Any, prompt_length: int, precision: int = 3) -> None:
        self.tokenizer = tokenizer
        self.prompt_length = prompt_length
        self.precision = precision

    def __call__(self, input_ids: torch.LongTensor, scores: torch.FloatTensor, **kwargs: Any) -> torch.BoolTensor:
        decoded = self.tokenizer.decode(input_ids[0][self.prompt_length :], skip_special_tokens=True)
        return _stop(input_ids, self.is_complete(decoded))

    def is_complete(self, decoded: str) -> bool:
        periods = decoded.count(".")
        if periods > 1:
            return True
        if periods == 1:
            fraction = decoded.strip().split(".")[1]
            if len(fraction) > self.precision:
                return True
        if len(decoded) > 1 and any(c.isdigit() for c in decoded) and decoded[-1] in (" ", "\n"):
            return True
        return False


class OutputNumbersTokens(LogitsProcessor):
    """Mask every token that cannot be part of a plain decimal number."""

    def __init__(self, tokenizer: Any) -> None:
        self.tokenizer = tokenizer
        self.allowed_ids = sorted(
            int(token_id)
            for token_id in tokenizer.get_vocab().values()
            if is_number_fragment(tokenizer.decode(int(token_id)))
        )
        self._masks: dict[tuple[int, str], torch.Tensor] = {}

    def mask_for(self, scores: torch.FloatTensor) -> torch.Tensor:
        width = int(scores.shape[-1])
        key = (width, str(scores.device))
        mask = self._masks.get(key)
        if mask is None:
            mask = torch.zeros(width, dtype=torch.bool, device=scores.device)
            ids = [i for i in self.allowed_ids if i < width]
            if ids:
                mask[torch.tensor(ids, dtype=torch.long, device=scores.device)] = True
            self._masks[key] = mask
        return mask

    def __call__(self, input_ids: torch.LongTensor, scores: torch.FloatTensor) -> torch.FloatTensor:
        return scores.masked_fill(~self.mask_for(scores), float("-inf"))


__all__ = [
    "NumberStoppingCriteria",
    "OutputNumbersTokens",
    "StringStoppingCriteria",
    "is_number_fragment",
]
