"""Model-level validation utilities for data integrity.

Reusable validators that enforce business rules at the ORM level, so invalid
rows never reach the database whichever service writes them.
"""


def rating_score(key: str, value):
    """Validate that a rating is an integer between 1 and 5."""
    if value is not None:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"{key} must be an integer, got {type(value).__name__}")
        if value < 1 or value > 5:
            raise ValueError(f"{key} must be between 1 and 5, got {value}")
    return value


def not_blank(key: str, value):
    """Validate that a string value has non-whitespace content."""
    if value is None or not str(value).strip():
        raise ValueError(f"{key} is required")
    return value


def one_of(key: str, value, allowed):
    """Validate that a value belongs to a fixed set of choices."""
    if value not in allowed:
        raise ValueError(f"{key} must be one of {sorted(allowed)}, got {value!r}")
    return value


def validate_dict(key: str, value):
    """Validate that a JSON column value is a dict (or None)."""
    if value is not None and not isinstance(value, dict):
        raise ValueError(f"{key} must be a dict, got {type(value).__name__}")
    return value
