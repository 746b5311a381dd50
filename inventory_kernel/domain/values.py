"""
Values -- decimal conversion and rounding for quantities and costs.

Responsibility:
    Centralizes how numbers enter the inventory kernel and how they are
    rounded on the way out, so that every engine and service uses the same
    precision rules.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Unit costs are rounded to COST_PLACES (4) with ROUND_HALF_UP.
    - Money shown to callers (valuation totals, ROI) is rounded to
      MONEY_PLACES (2) with ROUND_HALF_UP.
    - Quantities are whole numbers; ``bool`` is never accepted as a number.
    - No floats: float inputs are converted through ``str`` so that
      ``0.1`` becomes ``Decimal("0.1")``, never its binary expansion.

Failure modes:
    - InvalidQuantityError for non-integer or non-positive quantities.
    - InvalidCostError for negative or non-numeric costs.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from inventory_kernel.exceptions import InvalidCostError, InvalidQuantityError

COST_PLACES = 4
MONEY_PLACES = 2
ROUNDING = ROUND_HALF_UP

ZERO = Decimal("0")

_COST_QUANTUM = Decimal(1).scaleb(-COST_PLACES)
_MONEY_QUANTUM = Decimal(1).scaleb(-MONEY_PLACES)


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """
    Convert a numeric input to Decimal without binary float artifacts.

    Raises:
        InvalidOperation: if ``value`` is not numeric.
    """
    if isinstance(value, bool):
        raise InvalidOperation(f"Boolean is not a number: {value!r}")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round_cost(value: Decimal) -> Decimal:
    """Round a unit cost to the internal cost precision."""
    return value.quantize(_COST_QUANTUM, rounding=ROUNDING)


def round_money(value: Decimal) -> Decimal:
    """Round a monetary amount for display."""
    return value.quantize(_MONEY_QUANTUM, rounding=ROUNDING)


def require_whole_quantity(value: object, field: str = "quantity") -> int:
    """
    Validate that ``value`` is a whole number >= 1 and return it as int.

    Integral Decimals (``Decimal("3")``) are accepted; ``3.5`` is not.
    """
    if isinstance(value, bool):
        raise InvalidQuantityError(value, field)
    if isinstance(value, int):
        quantity = value
    elif isinstance(value, (Decimal, float)):
        try:
            dec = to_decimal(value)
        except InvalidOperation:
            raise InvalidQuantityError(value, field) from None
        if not dec.is_finite() or dec != dec.to_integral_value():
            raise InvalidQuantityError(value, field)
        quantity = int(dec)
    else:
        raise InvalidQuantityError(value, field)
    if quantity < 1:
        raise InvalidQuantityError(value, field)
    return quantity


def require_non_negative_cost(value: object, field: str = "unit_cost") -> Decimal:
    """Validate that ``value`` is a finite, non-negative decimal amount."""
    try:
        cost = to_decimal(value)  # type: ignore[arg-type]
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidCostError(value, reason=f"{field} is not a number") from None
    if not cost.is_finite():
        raise InvalidCostError(value, reason=f"{field} is not a finite number")
    if cost < 0:
        raise InvalidCostError(value, reason=f"{field} must be >= 0")
    return cost
