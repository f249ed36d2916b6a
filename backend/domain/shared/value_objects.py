"""
Shared Value Objects used across multiple domains.

Value Objects are immutable objects that describe characteristics of a thing.
Two value objects are equal if all their properties are equal.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

from .exceptions import NumericException


ZERO = Decimal('0')
HUNDRED = Decimal('100')


# =============================================================================
# ENUMERATIONS
# =============================================================================

class AssemblyModule(str, Enum):
    """Trade module an assembly belongs to (sections of the BOQ report)."""

    ELECTRONIC = "ELECTRONIC"
    ELECTRICAL = "ELECTRICAL"
    INSTALLATION = "INSTALLATION"
    MECHANICAL = "MECHANICAL"
    ASSEMBLY = "ASSEMBLY"

    @classmethod
    def report_order(cls) -> list[AssemblyModule]:
        """Order in which modules are printed in a Bill of Quantity."""
        return [
            cls.ELECTRONIC,
            cls.ELECTRICAL,
            cls.INSTALLATION,
            cls.MECHANICAL,
            cls.ASSEMBLY,
        ]


class GroupType(str, Enum):
    """Kind of assembly group, as configured in the catalog."""

    REQUIRED = "REQUIRED"        # every item must be picked
    CHOOSE_ONE = "CHOOSE_ONE"    # exactly one item
    OPTIONAL = "OPTIONAL"        # any subset
    CONFLICT = "CONFLICT"        # any subset without conflicting pairs


class IssueKind(str, Enum):
    """Kind of catalog reference that could not be resolved."""

    ASSEMBLY = "assembly"
    MATERIAL = "material"


# =============================================================================
# DECIMAL HELPERS
# =============================================================================

def to_decimal(value: Any, field: Optional[str] = None) -> Decimal:
    """
    Convert a number-like value to Decimal.

    Floats go through ``str`` so that ``0.1`` becomes ``Decimal('0.1')``.
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool) or value is None:
        raise NumericException(f"'{field or 'value'}' must be a number", field, value)
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise NumericException(f"'{field or 'value'}' must be a number", field, value)
    if not result.is_finite():
        raise NumericException(f"'{field or 'value'}' must be finite", field, value)
    return result


def non_negative(value: Any, field: str) -> Decimal:
    """Decimal that must be >= 0 (prices)."""
    result = to_decimal(value, field)
    if result < 0:
        raise NumericException(f"'{field}' cannot be negative", field, value)
    return result


def positive(value: Any, field: str) -> Decimal:
    """Decimal that must be > 0 (quantities)."""
    result = to_decimal(value, field)
    if result <= 0:
        raise NumericException(f"'{field}' must be greater than zero", field, value)
    return result


def format_decimal(value: Decimal) -> str:
    """Plain string without exponent or trailing zeros: 3.50 -> '3.5', 1E+2 -> '100'."""
    return format(value.normalize(), 'f')


# =============================================================================
# VALUE OBJECTS
# =============================================================================

@dataclass(frozen=True)
class Percentage:
    """
    Value object representing a share of a total.
    """

    key: str
    percent: Decimal

    @classmethod
    def of(cls, key: str, cost: Decimal, total: Decimal) -> Percentage:
        """Share of ``total``; zero when there is nothing to divide by."""
        if total > 0:
            return cls(key, HUNDRED * cost / total)
        return cls(key, ZERO)

    def __str__(self) -> str:
        return f"{self.percent:.2f}%"
