"""Parsing and clamping of untyped request parameters."""

from polywatch.utils.errors import InvalidInputError


def parse_int(
    value: str | int | None,
    default: int,
    *,
    name: str = "value",
    minimum: int | None = None,
    maximum: int | None = None,
) -> int:
    """Parse an integer parameter and clamp it into range.

    Args:
        value: Raw value, usually a query string. None or "" uses the default.
        default: Value used when nothing was supplied.
        name: Parameter name used in error messages.
        minimum: Lower bound, applied after parsing.
        maximum: Upper bound, applied after parsing.

    Returns:
        The clamped integer.

    Raises:
        InvalidInputError: If the value is not an integer.
    """
    if value is None or value == "":
        parsed = default
    elif isinstance(value, bool):
        raise InvalidInputError(f"{name} must be an integer")
    elif isinstance(value, int):
        parsed = value
    else:
        try:
            parsed = int(str(value).strip())
        except ValueError as e:
            raise InvalidInputError(f"{name} must be an integer") from e

    if minimum is not None:
        parsed = max(parsed, minimum)
    if maximum is not None:
        parsed = min(parsed, maximum)
    return parsed


def require(value: str | None, name: str) -> str:
    """Return a stripped non-empty string or raise InvalidInputError."""
    if value is None or not str(value).strip():
        raise InvalidInputError(f"{name} is required")
    return str(value).strip()
