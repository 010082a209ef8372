"""Human-readable formatting helpers shared by the CLI and status messages."""

from __future__ import annotations

import time


def format_size(size_bytes: int) -> str:
    """Format size in bytes to human-readable string."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    if size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.2f} KB"
    if size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.2f} MB"
    return f"{size_bytes / (1024 * 1024 * 1024):.2f} GB"


def format_timestamp(timestamp: int, now: float | None = None) -> str:
    """Format a Unix timestamp as a coarse relative time.

    Args:
        timestamp: Seconds since the epoch. Zero means unknown.
        now: Reference time, defaults to the current time.

    Returns:
        A string such as "Just now", "5 min ago" or "2 days ago".
    """
    if timestamp == 0:
        return "Unknown"

    current = int(now if now is not None else time.time())
    diff = max(0, current - timestamp)
    if diff < 60:
        return "Just now"
    if diff < 3600:
        return f"{diff // 60} min ago"
    if diff < 86400:
        return f"{diff // 3600} hr ago"
    return f"{diff // 86400} days ago"
