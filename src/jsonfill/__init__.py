"""
jsonfill: schema-driven JSON generation with causal language models.

Structural JSON is emitted by the library; the model only fills scalar values.
"""

from .config import BackendConfig, GenerationConfig, default_backend_config, default_generation_config
from .errors import ConfigurationError, GenerationFailure, JsonfillError, MarkerNotFoundError
from .format import format_values, highlight_values
from .generator import JsonFiller
from .schema import parse_root_schema, parse_schema

__all__ = [
    "BackendConfig",
    "ConfigurationError",
    "GenerationConfig",
    "GenerationFailure",
    "JsonFiller",
    "JsonfillError",
    "MarkerNotFoundError",
    "default_backend_config",
    "default_generation_config",
    "format_values",
    "highlight_values",
    "parse_root_schema",
    "parse_schema",
]
