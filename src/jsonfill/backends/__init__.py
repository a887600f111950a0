from .huggingface import load_model, resolve_device, resolve_dtype

__all__ = [
    "load_model",
    "resolve_device",
    "resolve_dtype",
]
