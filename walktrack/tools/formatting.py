from __future__ import annotations


def format_duration(seconds: int) -> str:
    """
    Render an elapsed time for display.

    Examples:
        3725 -> "1h 2m 5s", 125 -> "2m 5s", 42 -> "42s"
    """
    hours, rest = divmod(max(0, int(seconds)), 3600)
    minutes, secs = divmod(rest, 60)

    if hours > 0:
        return f"{hours}h {minutes}m {secs}s"
    elif minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"
