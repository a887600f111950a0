"""
Schema-driven JSON generation.

The generator walks the schema and emits all structural JSON itself. The
model is only consulted for scalar leaves and for deciding whether an array
keeps growing, each time with a prompt that ends exactly where the next value
starts.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any, Mapping

import torch
from termcolor import colored
from transformers import LogitsProcessorList, StoppingCriteriaList

from .config import GenerationConfig, default_generation_config
from .errors import ConfigurationError, GenerationFailure
from .processors import NumberStoppingCriteria, OutputNumbersTokens, StringStoppingCriteria
from .progress import Path, PromptAssembler, install, next_index
from .schema import (
    ArraySchema,
    BooleanSchema,
    NumberSchema,
    ObjectSchema,
    SchemaNode,
    StringSchema,
    parse_root_schema,
)

logger = logging.getLogger(__name__)

NUMBER_MAX_RETRIES = 3
NUMBER_RETRY_TEMPERATURE_FACTOR = 1.3
ARRAY_PROBE_TOP_K = 30

_PLAIN_DECIMAL = re.compile(r"-?(?:\d+\.?\d*|\.\d+)", re.ASCII)


def parse_number(text: str) -> float | None:
    """Parse a plain decimal literal; anything json.dumps could not emit as a JSON number is rejected."""
    if not _PLAIN_DECIMAL.fullmatch(text):
        return None
    number = float(text)
    return number if math.isfinite(number) else None


class JsonFiller:
    """Generates a JSON object conforming to ``json_schema`` with a causal language model.

    ``model`` and ``tokenizer`` follow the Hugging Face ``transformers`` interfaces.
    One instance runs one generation at a time; the output tree lives in
    ``self.value`` and is rebuilt from scratch on every call.
    """

    def __init__(
        self,
        model: Any,
        tokenizer: Any,
        json_schema: Mapping[str, Any],
        prompt: str,
        *,
        debug: bool = False,
        max_array_length: int = 10,
        max_number_tokens: int = 6,
        temperature: float = 1.0,
        max_string_token_length: int = 10,
    ) -> None:
        self.model = model
        self.tokenizer = tokenizer
        self.json_schema = json_schema
        self.prompt = prompt
        self.assembler = PromptAssembler(prompt, json_schema)

        self.debug_on = debug
        self.max_array_length = max_array_length
        self.max_number_tokens = max_number_tokens
        self.temperature = temperature
        self.max_string_token_length = max_string_token_length

        self.value: dict[str, Any] = {}
        self._number_logits_processor: OutputNumbersTokens | None = None

    @classmethod
    def from_config(
        cls,
        model: Any,
        tokenizer: Any,
        json_schema: Mapping[str, Any],
        prompt: str,
        config: GenerationConfig | None = None,
    ) -> "JsonFiller":
        cfg = config or default_generation_config()
        return cls(
            model,
            tokenizer,
            json_schema,
            prompt,
            debug=cfg.debug,
            max_array_length=cfg.max_array_length,
            max_number_tokens=cfg.max_number_tokens,
            temperature=cfg.temperature,
            max_string_token_length=cfg.max_string_token_length,
        )

    def debug(self, caller: str, value: Any, is_prompt: bool = False) -> None:
        if not self.debug_on:
            logger.debug("%s %s", caller, value)
            return
        color = "yellow" if is_prompt else "blue"
        logger.info("%s %s", colored(caller, "green"), colored(str(value), color))

    @property
    def number_logits_processor(self) -> OutputNumbersTokens:
        # Building the mask walks the whole vocabulary, so do it once and only when needed.
        if self._number_logits_processor is None:
            self._number_logits_processor = OutputNumbersTokens(self.tokenizer)
        return self._number_logits_processor

    def get_prompt(self, path: Path) -> str:
        return self.assembler.build(self.value, path)

    def _encode(self, prompt: str) -> torch.Tensor:
        return self.tokenizer.encode(prompt, return_tensors="pt").to(self.model.device)

    def _continuation(self, input_ids: torch.Tensor, response: torch.Tensor) -> str:
        return self.tokenizer.decode(response[0][input_ids.shape[1] :], skip_special_tokens=True)

    def _next_token_logits(self, prompt: str) -> torch.Tensor:
        input_ids = self._encode(prompt)
        with torch.no_grad():
            output = self.model.forward(input_ids)
        return output.logits[0, -1]

    def generate_number(self, path: Path) -> float:
        prompt = self.get_prompt(path)
        self.debug("[generate_number]", prompt, is_prompt=True)
        input_ids = self._encode(prompt)
        current_temperature = self.temperature

        response = ""
        for attempt in range(NUMBER_MAX_RETRIES + 1):
            output = self.model.generate(
                input_ids,
                max_new_tokens=self.max_number_tokens,
                num_return_sequences=1,
                logits_processor=LogitsProcessorList([self.number_logits_processor]),
                stopping_criteria=StoppingCriteriaList(
                    [NumberStoppingCriteria(self.tokenizer, input_ids.shape[1])]
                ),
                temperature=current_temperature,
                pad_token_id=self.tokenizer.eos_token_id,
            )
            response = self._continuation(input_ids, output).strip().rstrip(".")
            self.debug("[generate_number]", response)
            number = parse_number(response)
            if number is None:
                current_temperature *= NUMBER_RETRY_TEMPERATURE_FACTOR
                logger.debug(
                    "Unparseable number %r on attempt %d, retrying at temperature %.3f",
                    response,
                    attempt + 1,
                    current_temperature,
                )
                continue
            return install(self.value, path, number)

        raise GenerationFailure(
            f"Failed to generate a valid number after {NUMBER_MAX_RETRIES + 1} attempts (last response {response!r})",
            attempts=NUMBER_MAX_RETRIES + 1,
            last_response=response,
        )

    def generate_boolean(self, path: Path) -> bool:
        prompt = self.get_prompt(path)
        self.debug("[generate_boolean]", prompt, is_prompt=True)

        logits = self._next_token_logits(prompt)
        # TODO: compare full-sequence likelihoods for tokenizers that split "true"/"false" into several tokens.
        true_token_id = self.tokenizer.convert_tokens_to_ids("true")
        false_token_id = self.tokenizer.convert_tokens_to_ids("false")
        result = bool(logits[true_token_id] > logits[false_token_id])

        self.debug("[generate_boolean]", result)
        return install(self.value, path, result)

    def generate_string(self, path: Path) -> str:
        prompt = self.get_prompt(path) + '"'
        self.debug("[generate_string]", prompt, is_prompt=True)
        input_ids = self._encode(prompt)

        output = self.model.generate(
            input_ids,
            max_new_tokens=self.max_string_token_length,
            num_return_sequences=1,
            temperature=self.temperature,
            stopping_criteria=StoppingCriteriaList(
                [StringStoppingCriteria(self.tokenizer, input_ids.shape[1])]
            ),
            pad_token_id=self.tokenizer.eos_token_id,
        )
        response = self._continuation(input_ids, output)
        self.debug("[generate_string]", "|" + response + "|")

        if '"' not in response:
            return install(self.value, path, response)
        return install(self.value, path, response.split('"')[0].strip())

    def generate_object(self, properties: Mapping[str, SchemaNode], path: Path) -> dict[str, Any]:
        obj = self.value if not path else install(self.value, path, {})
        for key, schema in properties.items():
            self.debug("[generate_object] generating value for", key)
            self.generate_value(schema, path + (key,))
        return obj

    def generate_array(self, item_schema: SchemaNode, path: Path) -> list[Any]:
        array = install(self.value, path, [])
        while len(array) < self.max_array_length:
            self.generate_value(item_schema, path + (len(array),))
            if len(array) >= self.max_array_length:
                break
            if not self.should_continue_array(path):
                break
        return array

    def should_continue_array(self, path: Path) -> bool:
        """Probe the next token after the last element: a comma continues, a closing bracket stops."""
        prompt = self.get_prompt(next_index(self.value, path))
        logits = self._next_token_logits(prompt)

        k = min(ARRAY_PROBE_TOP_K, int(logits.shape[-1]))
        top_indices = logits.topk(k).indices
        sorted_token_ids = top_indices[logits[top_indices].argsort(descending=True)]

        for token_id in sorted_token_ids.tolist():
            decoded_token = self.tokenizer.decode(token_id)
            if "," in decoded_token:
                self.debug("[should_continue_array]", f"continue ({decoded_token!r})")
                return True
            if "]" in decoded_token:
                self.debug("[should_continue_array]", f"stop ({decoded_token!r})")
                return False
        self.debug("[should_continue_array]", f"stop (no separator in top {k})")
        return False

    def generate_value(self, schema: SchemaNode, path: Path) -> Any:
        if isinstance(schema, NumberSchema):
            return self.generate_number(path)
        if isinstance(schema, BooleanSchema):
            return self.generate_boolean(path)
        if isinstance(schema, StringSchema):
            return self.generate_string(path)
        if isinstance(schema, ArraySchema):
            return self.generate_array(schema.items, path)
        if isinstance(schema, ObjectSchema):
            return self.generate_object(schema.properties, path)
        raise ConfigurationError(f"Unsupported schema type: {schema!r}")

    def call(self) -> dict[str, Any]:
        root = parse_root_schema(self.json_schema)
        self.value = {}
        return self.generate_object(root.properties, ())

    def __call__(self) -> dict[str, Any]:
        return self.call()


__all__ = [
    "ARRAY_PROBE_TOP_K",
    "JsonFiller",
    "NUMBER_MAX_RETRIES",
    "NUMBER_RETRY_TEMPERATURE_FACTOR",
    "parse_number",
]
