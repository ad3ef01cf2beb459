from datetime import date, timedelta
from decimal import Decimal

from django.contrib.auth.models import AnonymousUser, User
from django.test import SimpleTestCase, TestCase
from django.utils import timezone

from .models import Product
from .services.dashboard import dashboard_summary, period_start
from .services.documents import save_document
from .services.payments import record_payment
from .services.results import ValidationFailure


class PeriodStartTest(SimpleTestCase):
    def test_periods(self):
        today = date(2024, 5, 31)
        self.assertEqual(period_start("week", today), date(2024, 5, 24))
        self.assertEqual(period_start("month", today), date(2024, 4, 30))
        self.assertEqual(period_start("quarter", today), date(2024, 2, 29))
        self.assertEqual(period_start("year", today), date(2023, 5, 31))

    def test_january_rolls_back_a_year(self):
        self.assertEqual(period_start("month", date(2024, 1, 15)), date(2023, 12, 15))

    def test_unknown_period(self):
        with self.assertRaises(ValidationFailure):
            period_start("decade", date(2024, 1, 1))


class DashboardSummaryTest(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="owner", password="password")
        self.seeds = Product.objects.create(
            owner=self.user, name="Seeds", category="Garden", selling_price=Decimal("10"),
            purchase_price=Decimal("4"), current_stock=Decimal("20"), min_stock_level=Decimal("5"),
        )
        self.hose = Product.objects.create(
            owner=self.user, name="Hose", purchase_price=Decimal("12"),
            current_stock=Decimal("1"), min_stock_level=Decimal("2"),
        )

    def invoice(self, **payload):
        result = save_document(self.user, payload)
        self.assertTrue(result.ok, result.error)
        return result.data

    def test_sales_and_stock_figures(self):
        paid = self.invoice(status="sent", items=[{"product": self.seeds.pk, "quantity": 3, "unit_price": 10}])
        record_payment(self.user, paid.pk, {"amount": "30"})
        self.invoice(
            status="sent",
            due_date=str(timezone.localdate() - timedelta(days=1)),
            items=[{"description": "Delivery", "quantity": 1, "unit_price": 20}],
        )
        self.invoice(type="quote", items=[{"quantity": 1, "unit_price": 999}])

        result = dashboard_summary(self.user)
        self.assertTrue(result.ok, result.error)
        summary = result.data
        sales = summary["sales"]

        self.assertEqual(summary["period"], "month")
        self.assertEqual(sales["total_sales"], Decimal("50.00"))
        self.assertEqual(sales["total_paid"], Decimal("30.00"))
        self.assertEqual(sales["total_due"], Decimal("20.00"))
        self.assertEqual(sales["invoice_count"], 2)
        self.assertEqual(sales["paid_invoice_count"], 1)
        self.assertEqual(sales["overdue_invoice_count"], 1)
        self.assertEqual(sales["sales_by_category"], [{"name": "Garden", "value": Decimal("30.00")}])
        self.assertEqual(len(sales["sales_by_day"]), 1)

        stock = summary["stock"]
        self.assertEqual(stock["total_products"], 2)
        self.assertEqual(stock["low_stock_count"], 1)
        # seeds: 17 left at 4.00, hose: 1 at 12.00
        self.assertEqual(stock["total_stock_value"], Decimal("80.00"))
        self.assertEqual(stock["top_selling_products"][0]["name"], "Seeds")
        self.assertEqual(stock["top_selling_products"][0]["revenue"], Decimal("30.00"))

        self.assertEqual(len(summary["recent_invoices"]), 2)
        self.assertEqual(len(summary["recent_movements"]), 1)

    def test_empty_dashboard(self):
        sales = dashboard_summary(self.user, period="week").data["sales"]
        self.assertEqual(sales["total_sales"], Decimal("0.00"))
        self.assertEqual(sales["invoice_count"], 0)

    def test_invoices_before_the_period_are_left_out(self):
        self.invoice(status="sent", issue_date="2000-01-01", items=[{"quantity": 1, "unit_price": 5}])
        self.assertEqual(dashboard_summary(self.user, period="year").data["sales"]["invoice_count"], 0)

    def test_bad_period_and_anonymous(self):
        self.assertEqual(dashboard_summary(self.user, period="decade").status_code, 400)
        self.assertEqual(dashboard_summary(AnonymousUser()).status_code, 401)

    def test_drafts_are_never_overdue(self):
        yesterday = str(timezone.localdate() - timedelta(days=1))
        self.invoice(due_date=yesterday, items=[{"quantity": 1, "unit_price": 5}])
        self.invoice(status="sent", due_date=yesterday, items=[{"quantity": 1, "unit_price": 5}])
        sales = dashboard_summary(self.user).data["sales"]
        self.assertEqual(sales["invoice_count"], 2)
        self.assertEqual(sales["overdue_invoice_count"], 1)
