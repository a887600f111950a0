from __future__ import annotations

import logging
from typing import Any

from ..config import BackendConfig, default_backend_config

logger = logging.getLogger(__name__)


def resolve_device(torch: Any, device: str) -> Any:
    if device == "auto":
        if torch.backends.mps.is_available():
            return torch.device("mps")
        if torch.cuda.is_available():
            return torch.device("cuda")
        return torch.device("cpu")
    return torch.device(device)


def resolve_dtype(torch: Any, dtype: str, device: Any) -> Any:
    if dtype != "auto":
        return getattr(torch, dtype, torch.float32)
    if str(device).startswith("cuda"):
        return torch.float16
    return torch.float32


def load_model(config: BackendConfig | None = None) -> tuple[Any, Any]:
    """Load a causal LM and its tokenizer from a local path or the Hugging Face hub.

    Returns ``(model, tokenizer)`` ready for generation: the model is moved to the
    resolved device and put in eval mode, and the tokenizer's pad token defaults to EOS.
    """
    import torch
    from transformers import AutoModelForCausalLM, AutoTokenizer

    cfg = config or default_backend_config()
    device = resolve_device(torch, cfg.device)
    dtype = resolve_dtype(torch, cfg.dtype, device)

    logger.info("Loading HF model %s on %s (%s)", cfg.model_id, device, dtype)
    tokenizer = AutoTokenizer.from_pretrained(cfg.model_id, trust_remote_code=cfg.trust_remote_code)
    if tokenizer.pad_token is None and tokenizer.eos_token is not None:
        tokenizer.pad_token = tokenizer.eos_token
    model = AutoModelForCausalLM.from_pretrained(
        cfg.model_id,
        torch_dtype=dtype,
        trust_remote_code=cfg.trust_remote_code,
    )
    model = model.to(device)
    model.eval()
    return model, tokenizer


__all__ = ["load_model", "resolve_device", "resolve_dtype"]
