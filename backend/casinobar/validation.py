from __future__ import annotations

from typing import Any


# Weekly restock day a product is normally replenished on
RESTOCK_DAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


class ValidationError(ValueError):
    """400-level input problem."""


class NotFoundError(ValidationError):
    """Reference to an id that does not exist in the venue."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., worker already on shift)."""


def coerce_int(field: str, value: Any) -> int:
    """
    Strict integer coercion for amounts and quantities.

    Rejects floats, booleans and scientific notation so "12.5" or "1e6"
    never turn into a silently truncated count.
    """
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        if "e" in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        if "." in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    raise ValidationError(f"{field} must be an integer")


def require_name(field: str, value: Any) -> str:
    if value is None:
        raise ValidationError(f"{field} is required")
    name = str(value).strip()
    if not name:
        raise ValidationError(f"{field} cannot be empty")
    return name


def require_positive(field: str, value: Any) -> int:
    number = coerce_int(field, value)
    if number <= 0:
        raise ValidationError(f"{field} must be greater than 0")
    return number


def require_non_negative(field: str, value: Any) -> int:
    number = coerce_int(field, value)
    if number < 0:
        raise ValidationError(f"{field} cannot be negative")
    return number


def require_restock_day(value: Any) -> str:
    day = str(value or "").strip().lower()
    if day not in RESTOCK_DAYS:
        raise ValidationError(f"restock_day must be one of: {', '.join(RESTOCK_DAYS)}")
    return day


def coerce_quantity_map(field: str, raw: Any) -> dict[str, int]:
    """{product_id: qty} from a JSON object; quantities must be >= 0."""
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValidationError(f"{field} must be an object of id -> quantity")
    return {str(key): require_non_negative(f"{field}[{key}]", value) for key, value in raw.items()}
