"""Formatting helpers for scrap amounts, timers and multipliers."""

from __future__ import annotations

_SUFFIXES = ("", "K", "M", "B", "T", "Qa", "Qi")


def format_number(value: float) -> str:
    """Format a large number with a K/M/B suffix."""
    if value < 1000:
        return str(int(value)) if value == int(value) else f"{value:.1f}"
    exp = 0
    while value >= 1000 and exp < len(_SUFFIXES) - 1:
        value /= 1000.0
        exp += 1
    return f"{value:.2f}{_SUFFIXES[exp]}"


def format_time(seconds: float) -> str:
    """Format seconds into a human-readable time string."""
    if seconds < 60:
        return f"{int(seconds)}s"
    if seconds < 3600:
        return f"{int(seconds // 60)}m {int(seconds % 60)}s"
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    return f"{hours}h {minutes}m"


def format_multiplier(value: float) -> str:
    return f"x{value:.2f}"
