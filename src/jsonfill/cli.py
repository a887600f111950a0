"""Command-line entry point: fill a JSON schema with a Hugging Face model.

Example:
  jsonfill --schema person.json --prompt "Generate a person's information" --pretty
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Sequence

from .backends import load_model
from .config import BackendConfig, GenerationConfig, default_backend_config, default_generation_config
from .errors import ConfigurationError, GenerationFailure
from .format import highlight_values
from .generator import JsonFiller
from .schema import parse_root_schema

logger = logging.getLogger(__name__)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    backend = default_backend_config()
    generation = default_generation_config()

    parser = argparse.ArgumentParser(
        prog="jsonfill",
        description="Generate JSON conforming to a schema, letting the model fill only the values.",
    )
    parser.add_argument("--schema", required=True, type=Path, help="Path to a JSON schema file")
    parser.add_argument("--prompt", required=True, help="Free-text instruction shown to the model")
    parser.add_argument("--model", default=backend.model_id, help=f"Model id or path (default: {backend.model_id})")
    parser.add_argument("--device", default=backend.device, help="Torch device, or 'auto'")
    parser.add_argument("--dtype", default=backend.dtype, help="Torch dtype name, or 'auto'")
    parser.add_argument("--trust-remote-code", action="store_true", default=backend.trust_remote_code)
    parser.add_argument("--max-array-length", type=int, default=generation.max_array_length)
    parser.add_argument("--max-number-tokens", type=int, default=generation.max_number_tokens)
    parser.add_argument("--max-string-tokens", type=int, default=generation.max_string_token_length)
    parser.add_argument("--temperature", type=float, default=generation.temperature)
    parser.add_argument("--debug", action="store_true", default=generation.debug, help="Log prompts and raw model output")
    parser.add_argument(
        "--log-level",
        default=os.environ.get("JSONFILL_LOG_LEVEL", "WARNING"),
        help="Logging level (default: WARNING, or INFO with --debug)",
    )
    parser.add_argument("--pretty", action="store_true", help="Print a highlighted rendering instead of JSON")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    level = "INFO" if args.debug and args.log_level.upper() == "WARNING" else args.log_level.upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        schema = json.loads(args.schema.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        print(f"error: cannot read schema {str(args.schema)!r}: {exc}", file=sys.stderr)
        return 2
    try:
        parse_root_schema(schema)
    except ConfigurationError as exc:
        print(f"error: invalid schema: {exc}", file=sys.stderr)
        return 2

    model, tokenizer = load_model(
        BackendConfig(
            model_id=args.model,
            device=args.device,
            dtype=args.dtype,
            trust_remote_code=args.trust_remote_code,
        )
    )
    filler = JsonFiller.from_config(
        model,
        tokenizer,
        schema,
        args.prompt,
        GenerationConfig(
            max_array_length=args.max_array_length,
            max_number_tokens=args.max_number_tokens,
            temperature=args.temperature,
            max_string_token_length=args.max_string_tokens,
            debug=args.debug,
        ),
    )

    try:
        result = filler()
    except GenerationFailure as exc:
        logger.error("Generation failed after %d attempts", exc.attempts)
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if args.pretty:
        highlight_values(result)
    else:
        print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
