"""Terminal rendering of generated values, with scalar leaves highlighted."""

from __future__ import annotations

from typing import Any

from termcolor import colored


def _scalar(value: Any) -> str:
    if isinstance(value, str):
        text = f'"{value}"'
    elif isinstance(value, bool):
        text = "true" if value else "false"
    else:
        text = str(value)
    return colored(text, "green")


def _render(value: Any, indent: int, is_last: bool, lines: list[str], prefix: str) -> None:
    tail = "" if is_last else ","
    pad = " " * indent
    if isinstance(value, dict):
        lines.append(prefix + "{")
        keys = list(value)
        for i, key in enumerate(keys):
            _render(value[key], indent + 2, i == len(keys) - 1, lines, f"{pad}  {key}: ")
        lines.append(f"{pad}}}{tail}")
    elif isinstance(value, list):
        lines.append(prefix + "[")
        for i, item in enumerate(value):
            _render(item, indent + 2, i == len(value) - 1, lines, f"{pad}  ")
        lines.append(f"{pad}]{tail}")
    else:
        lines.append(prefix + _scalar(value) + tail)


def format_values(value: Any) -> str:
    lines: list[str] = []
    _render(value, 0, True, lines, "")
    return "\n".join(lines)


def highlight_values(value: Any) -> None:
    print(format_values(value))


__all__ = ["format_values", "highlight_values"]
