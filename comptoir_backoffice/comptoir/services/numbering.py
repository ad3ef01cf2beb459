# comptoir/services/numbering.py
from datetime import date, timedelta
from typing import Optional

from django.conf import settings
from django.utils import timezone

DEFAULT_INVOICE_FORMAT = "INV-{YEAR}{MONTH}-{SEQUENCE}"
DEFAULT_QUOTE_FORMAT = "QUO-{YEAR}{MONTH}-{SEQUENCE}"
DEFAULT_ORDER_FORMAT = "CMD-{YEAR}{MONTH}-{SEQUENCE}"
DEFAULT_DELIVERY_FORMAT = "BL-{YEAR}{MONTH}-{SEQUENCE}"


def generate_document_number(number_format: Optional[str], sequence: int, today: Optional[date] = None) -> str:
    """
    Fill {YEAR}, {MONTH}, {DAY} and {SEQUENCE} in `number_format`.

    Month and day are zero-padded to 2 digits, the sequence to 4.
    Every occurrence is replaced; a string without placeholders comes back as is.
    """
    if not number_format:
        return f"DOC-{sequence}"

    today = today or timezone.localdate()
    return (
        number_format
        .replace("{YEAR}", str(today.year))
        .replace("{MONTH}", f"{today.month:02d}")
        .replace("{DAY}", f"{today.day:02d}")
        .replace("{SEQUENCE}", f"{int(sequence):04d}")
    )


def default_payment_terms_days() -> int:
    return int(getattr(settings, "COMPTOIR", {}).get("DEFAULT_PAYMENT_TERMS_DAYS", 30))


def calculate_due_date(issue_date: Optional[date], payment_terms) -> date:
    """Issue date plus the payment terms in days; unparsable terms use the configured default."""
    issue_date = issue_date or timezone.localdate()
    try:
        days = int(str(payment_terms).strip())
    except (TypeError, ValueError):
        days = default_payment_terms_days()
    return issue_date + timedelta(days=days)
