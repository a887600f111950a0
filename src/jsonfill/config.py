from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass
class GenerationConfig:
    max_array_length: int = 10
    max_number_tokens: int = 6
    temperature: float = 1.0
    max_string_token_length: int = 10
    debug: bool = False


@dataclass
class BackendConfig:
    model_id: str = "databricks/dolly-v2-3b"
    device: str = "auto"
    dtype: str = "auto"
    trust_remote_code: bool = False


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def default_generation_config() -> GenerationConfig:
    defaults = GenerationConfig()
    return GenerationConfig(
        max_array_length=_env_int("JSONFILL_MAX_ARRAY_LENGTH", defaults.max_array_length),
        max_number_tokens=_env_int("JSONFILL_MAX_NUMBER_TOKENS", defaults.max_number_tokens),
        temperature=_env_float("JSONFILL_TEMPERATURE", defaults.temperature),
        max_string_token_length=_env_int("JSONFILL_MAX_STRING_TOKENS", defaults.max_string_token_length),
        debug=_env_bool("JSONFILL_DEBUG", defaults.debug),
    )


def default_backend_config() -> BackendConfig:
    defaults = BackendConfig()
    return BackendConfig(
        model_id=os.environ.get("JSONFILL_MODEL") or defaults.model_id,
        device=os.environ.get("JSONFILL_DEVICE", defaults.device),
        dtype=os.environ.get("JSONFILL_DTYPE", defaults.dtype),
        trust_remote_code=_env_bool("JSONFILL_TRUST_REMOTE_CODE", defaults.trust_remote_code),
    )


__all__ = [
    "BackendConfig",
    "GenerationConfig",
    "default_backend_config",
    "default_generation_config",
]
