"""
Custom Validators
=================

Custom validation functions untuk business rules
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional
import re

# UUID versions 1-5, RFC 4122 variant
UUID_PATTERN = re.compile(
    r'^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$',
    re.IGNORECASE
)

def is_valid_uuid(value: Any) -> bool:
    """Check UUID v1-5 format"""
    return isinstance(value, str) and bool(UUID_PATTERN.match(value))

def is_blank(value: Any) -> bool:
    """None, empty or whitespace-only"""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ''
    return False

def to_decimal(value: Any) -> Optional[Decimal]:
    """Coerce a loosely typed device number; None when not numeric"""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite():
        return None
    return number

def validate_non_negative_number(value: Decimal) -> Decimal:
    """Validate non-negative number"""
    if value < 0:
        raise ValueError('Value must be non-negative')
    return value

def validate_positive_number(value: Decimal) -> Decimal:
    """Validate positive number"""
    if value <= 0:
        raise ValueError('Value must be positive')
    return value
