# comptoir/services/dashboard.py
"""
Dashboard figures for one user over a trailing period.

Sales figures cover invoices issued since the start of the period; stock
figures describe the current catalogue.
"""
import calendar
from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Dict, Optional

from django.conf import settings
from django.db.models import Count, Q, Sum
from django.utils import timezone

from ..models import Document, LineItem, Product, StockMovement
from .results import ValidationFailure, require_user, service_operation
from .totals import money

PERIODS = ("week", "month", "quarter", "year")


def _months_back(day: date, months: int) -> date:
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def period_start(period: str, today: Optional[date] = None) -> date:
    today = today or timezone.localdate()
    if period == "week":
        return today - timedelta(days=7)
    if period == "month":
        return _months_back(today, 1)
    if period == "quarter":
        return _months_back(today, 3)
    if period == "year":
        return _months_back(today, 12)
    raise ValidationFailure(f"Unknown period: {period}")


def _config(key: str, default: int) -> int:
    return int(getattr(settings, "COMPTOIR", {}).get(key, default))


def sales_summary(user, start: date, today: date) -> Dict[str, Any]:
    invoices = Document.objects.filter(owner=user, type=Document.Type.INVOICE, issue_date__gte=start)
    agg = invoices.aggregate(
        total_sales=Sum("total"),
        total_paid=Sum("amount_paid"),
        total_due=Sum("amount_due"),
        invoice_count=Count("id"),
        paid_invoice_count=Count("id", filter=Q(status=Document.Status.PAID)),
        overdue_invoice_count=Count(
            "id",
            filter=Q(due_date__lt=today) & ~Q(status__in=[Document.Status.PAID, Document.Status.DRAFT]),
        ),
    )
    for key in ("total_sales", "total_paid", "total_due"):
        agg[key] = money(agg[key] or Decimal("0"))

    by_day = (
        invoices.values("issue_date")
        .annotate(sales=Sum("total"), count=Count("id"))
        .order_by("issue_date")
    )
    agg["sales_by_day"] = [
        {"date": row["issue_date"], "sales": money(row["sales"]), "count": row["count"]}
        for row in by_day
    ]

    by_category = (
        LineItem.objects.filter(document__in=invoices, product__isnull=False)
        .values("product__category")
        .annotate(value=Sum("total"))
        .order_by("-value")
    )
    agg["sales_by_category"] = [
        {"name": row["product__category"] or "Uncategorized", "value": money(row["value"])}
        for row in by_category
    ]
    return agg


def stock_summary(user) -> Dict[str, Any]:
    products = list(Product.objects.filter(owner=user))
    by_id = {p.pk: p for p in products}

    sold = defaultdict(Decimal)
    sales = StockMovement.objects.filter(
        owner=user, type=StockMovement.Type.OUT, reason=StockMovement.Reason.SALE
    ).values("product_id").annotate(quantity=Sum("quantity"))
    for row in sales:
        sold[row["product_id"]] += row["quantity"] or Decimal("0")

    top = []
    for product_id, quantity in sold.items():
        product = by_id.get(product_id)
        top.append({
            "id": product_id,
            "name": product.name if product else "Unknown product",
            "quantity_sold": quantity,
            "revenue": money(quantity * product.selling_price) if product else Decimal("0.00"),
        })
    top.sort(key=lambda row: row["quantity_sold"], reverse=True)

    return {
        "total_products": len(products),
        "low_stock_count": sum(1 for p in products if p.is_low_stock),
        "total_stock_value": money(sum((p.current_stock * p.purchase_price for p in products), Decimal("0"))),
        "top_selling_products": top[:_config("DASHBOARD_TOP_PRODUCTS", 5)],
    }


@service_operation
def dashboard_summary(user, period="month", today=None):
    """Sales and stock figures plus the latest invoices and movements."""
    require_user(user)
    period = period or "month"
    today = today or timezone.localdate()
    start = period_start(period, today)
    recent = _config("DASHBOARD_RECENT_ITEMS", 5)

    return {
        "period": period,
        "start_date": start,
        "sales": sales_summary(user, start, today),
        "stock": stock_summary(user),
        "recent_invoices": list(
            Document.objects.filter(owner=user, type=Document.Type.INVOICE)
            .order_by("-issue_date", "-id")[:recent]
        ),
        "recent_movements": list(
            StockMovement.objects.filter(owner=user).select_related("product")
            .order_by("-date", "-id")[:recent]
        ),
    }
