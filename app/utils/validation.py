"""
Validation utilities
"""
import uuid

# prices are stored in a 32-bit INTEGER column
MAX_PRICE = 2**31 - 1


def parse_uuid(value: str) -> uuid.UUID:
    """
    Распарсить UUID из строки

    Args:
        value: Строка вида "60601fee-2bf1-4721-ae6f-7636e79a0cba"

    Returns:
        uuid.UUID

    Raises:
        ValueError: если строка не является UUID
    """
    if isinstance(value, uuid.UUID):
        return value
    if not isinstance(value, str):
        raise ValueError("UUID must be a string")
    try:
        return uuid.UUID(value.strip())
    except ValueError as exc:
        raise ValueError(f"invalid UUID {value!r}") from exc


def parse_int_or_default(value: str | None, default: int) -> int:
    """
    Query-string integer; empty or non-numeric falls back to default

    Example:
        >>> parse_int_or_default("20", 100)
        20
        >>> parse_int_or_default("abc", 100)
        100
    """
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        return default


def validate_price(value) -> int:
    """
    Monthly price in the smallest currency unit (non-negative integer)

    Raises:
        ValueError: bool, non-integer, negative or above MAX_PRICE
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError("price must be an integer")
    if value < 0:
        raise ValueError("price must be >= 0")
    if value > MAX_PRICE:
        raise ValueError(f"price must be <= {MAX_PRICE}")
    return value
