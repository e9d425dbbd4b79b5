"""
Validation utilities for input validation and error handling.
"""
from decimal import Decimal, InvalidOperation
from typing import Any

from .error_handlers import ValidationError, get_error_message


def validate_string_field(
    value: Any,
    field_name: str,
    min_length: int = 1,
    max_length: int = 1000,
    required: bool = True,
) -> str | None:
    """Validate a string field with common rules."""
    if value is None:
        if required:
            raise ValidationError(f"{field_name} is required")
        return None

    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string")

    value = value.strip()

    if not value:
        if required:
            raise ValidationError(f"{field_name} cannot be empty")
        return None

    if len(value) < min_length:
        raise ValidationError(f"{field_name} must be at least {min_length} characters")

    if len(value) > max_length:
        raise ValidationError(f"{field_name} must not exceed {max_length} characters")

    return value


def validate_integer_field(
    value: Any,
    field_name: str,
    min_value: int | None = None,
    max_value: int | None = None,
    required: bool = True,
) -> int | None:
    """Validate an integer field."""
    if value is None:
        if required:
            raise ValidationError(f"{field_name} is required")
        return None

    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a valid integer")

    if not isinstance(value, int):
        try:
            value = int(value)
        except (ValueError, TypeError):
            raise ValidationError(f"{field_name} must be a valid integer")

    if min_value is not None and value < min_value:
        raise ValidationError(f"{field_name} must be at least {min_value}")

    if max_value is not None and value > max_value:
        raise ValidationError(f"{field_name} must not exceed {max_value}")

    return value


def validate_id_list(values: Any, field_name: str = "application_ids") -> tuple[list[int], list[Any]]:
    """
    Split a non-empty id list into (valid ids, invalid entries).

    Only an empty list is an error. Entries that are not positive integers are
    returned as invalid instead of raising, so one bad id never sinks a batch.
    Duplicates are dropped from both lists, first occurrence order is kept.
    """
    if not values:
        raise ValidationError(get_error_message("empty_bulk_ids"))
    if not isinstance(values, (list, tuple)):
        raise ValidationError(f"{field_name} must be a list")

    ids: list[int] = []
    invalid: list[Any] = []
    seen: set[str] = set()
    for v in values:
        try:
            i = validate_integer_field(v, field_name, min_value=1)
        except ValidationError:
            key = f"invalid:{v!r}"
            if key not in seen:
                seen.add(key)
                invalid.append(v)
            continue
        key = f"id:{i}"
        if key in seen:
            continue
        seen.add(key)
        ids.append(i)
    return ids, invalid


def validate_weights(weights: dict[str, Any]) -> dict[str, float]:
    """
    Validate scoring weights: every weight within [0, 100] and the total exactly 100.
    The total is compared in decimal so 33.3 + 33.3 + 33.4 passes.
    """
    total = Decimal("0")
    out: dict[str, float] = {}
    for name, raw in weights.items():
        if raw is None or isinstance(raw, bool):
            raise ValidationError(f"{name} is required")
        try:
            d = Decimal(str(raw))
        except (InvalidOperation, ValueError):
            raise ValidationError(f"{name} must be a number")
        if not d.is_finite():
            raise ValidationError(f"{name} must be a number")
        if d < 0 or d > 100:
            raise ValidationError(f"{name} must be between 0 and 100")
        total += d
        out[name] = float(d)

    if total != Decimal("100"):
        raise ValidationError(
            get_error_message("invalid_weights"),
            details={"total": float(total)},
        )
    return out
