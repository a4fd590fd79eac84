"""Case-insensitive substring matching helpers for ILIKE queries."""


def like_pattern(value: str) -> str:
    """Build an ILIKE pattern matching ``value`` anywhere, with wildcards escaped."""
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"
