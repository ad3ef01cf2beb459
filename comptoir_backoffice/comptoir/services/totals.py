# comptoir/services/totals.py
"""
Line and document totals.

Pure functions: they accept model instances or plain dicts and never touch
the database. Every monetary figure is rounded half-up to 2 decimals at each
step, so the stored line totals always add up to the document totals.
"""
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable, List, Optional, Tuple

ZERO = Decimal("0.00")
HUNDRED = Decimal("100")

PERCENTAGE = "percentage"
FIXED = "fixed"


def to_decimal(value: Any) -> Decimal:
    """Missing, blank, unparsable or non-finite input counts as 0."""
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, bool):
        return Decimal("0")
    try:
        d = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        return Decimal("0")
    if not d.is_finite():
        return Decimal("0")
    return d


def money(value: Any) -> Decimal:
    """Round half-up to cents; a value too large to round counts as 0."""
    try:
        return to_decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return Decimal("0.00")


def _get(obj: Any, name: str, default: Any = None) -> Any:
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def apply_discount(amount: Decimal, discount_type: Optional[str], discount_value: Any) -> Decimal:
    """Return `amount` reduced by a percentage or fixed discount (unrounded)."""
    value = to_decimal(discount_value)
    if discount_type == PERCENTAGE:
        return amount * (Decimal("1") - value / HUNDRED)
    if discount_type == FIXED:
        return amount - value
    return amount


@dataclass(frozen=True)
class LineTotals:
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal


@dataclass(frozen=True)
class DocumentTotals:
    subtotal: Decimal = ZERO
    discount_total: Decimal = ZERO
    taxable_amount: Decimal = ZERO
    tax_total: Decimal = ZERO
    total: Decimal = ZERO
    amount_paid: Decimal = ZERO
    amount_due: Decimal = ZERO


def line_totals(item: Any) -> LineTotals:
    quantity = to_decimal(_get(item, "quantity"))
    unit_price = to_decimal(_get(item, "unit_price"))
    tax_rate = to_decimal(_get(item, "tax_rate"))

    raw = apply_discount(
        quantity * unit_price,
        _get(item, "discount_type"),
        _get(item, "discount_value"),
    )
    subtotal = money(raw)
    tax_amount = money(subtotal * tax_rate / HUNDRED)
    return LineTotals(subtotal=subtotal, tax_amount=tax_amount, total=money(subtotal + tax_amount))


def global_discount_amount(subtotal: Decimal, discount_type: Optional[str], discount_value: Any) -> Decimal:
    value = to_decimal(discount_value)
    if discount_type == PERCENTAGE:
        return money(subtotal * value / HUNDRED)
    if discount_type == FIXED:
        return money(value)
    return ZERO


def payments_total(payments: Optional[Iterable[Any]]) -> Decimal:
    # Pending payments count too; status only matters for display.
    return money(sum((to_decimal(_get(p, "amount")) for p in (payments or [])), Decimal("0")))


def calculate_totals(
    items: Optional[Iterable[Any]],
    global_discount_type: Optional[str] = None,
    global_discount_value: Any = None,
    payments: Optional[Iterable[Any]] = None,
) -> Tuple[List[LineTotals], DocumentTotals]:
    """
    Compute per-line totals and the document totals.

    Tax is summed from the lines, i.e. computed before the global discount:
        total = (subtotal - discount_total) + tax_total
    A document without lines carries no global discount.
    """
    items = list(items or [])
    lines = [line_totals(item) for item in items]

    subtotal = money(sum((l.subtotal for l in lines), Decimal("0")))
    tax_total = money(sum((l.tax_amount for l in lines), Decimal("0")))

    if lines:
        discount_total = global_discount_amount(subtotal, global_discount_type, global_discount_value)
    else:
        discount_total = ZERO

    taxable_amount = money(subtotal - discount_total)
    total = money(taxable_amount + tax_total)
    amount_paid = payments_total(payments)

    return lines, DocumentTotals(
        subtotal=subtotal,
        discount_total=discount_total,
        taxable_amount=taxable_amount,
        tax_total=tax_total,
        total=total,
        amount_paid=amount_paid,
        amount_due=money(total - amount_paid),
    )


def derive_payment_status(current_status: str, totals: DocumentTotals) -> str:
    """paid when nothing is left to pay, partial when something was paid, else unchanged."""
    if totals.amount_due <= 0:
        return "paid"
    if totals.amount_paid > 0:
        return "partial"
    return current_status
