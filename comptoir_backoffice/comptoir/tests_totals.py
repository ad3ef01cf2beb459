from decimal import Decimal

from django.test import SimpleTestCase

from .services.totals import (
    calculate_totals,
    derive_payment_status,
    line_totals,
    money,
    to_decimal,
)


class LineTotalsTest(SimpleTestCase):
    def test_plain_line(self):
        line = line_totals({"quantity": 2, "unit_price": 100, "tax_rate": 19})
        self.assertEqual(line.subtotal, Decimal("200.00"))
        self.assertEqual(line.tax_amount, Decimal("38.00"))
        self.assertEqual(line.total, Decimal("238.00"))

    def test_percentage_discount(self):
        line = line_totals({
            "quantity": "3", "unit_price": "10", "tax_rate": "10",
            "discount_type": "percentage", "discount_value": "10",
        })
        self.assertEqual(line.subtotal, Decimal("27.00"))
        self.assertEqual(line.tax_amount, Decimal("2.70"))
        self.assertEqual(line.total, Decimal("29.70"))

    def test_fixed_discount(self):
        line = line_totals({
            "quantity": 2, "unit_price": "50", "tax_rate": 0,
            "discount_type": "fixed", "discount_value": "15",
        })
        self.assertEqual(line.subtotal, Decimal("85.00"))
        self.assertEqual(line.total, Decimal("85.00"))

    def test_total_is_rounded_subtotal_plus_tax(self):
        line = line_totals({"quantity": "1.5", "unit_price": "9.99", "tax_rate": "19"})
        self.assertEqual(line.subtotal, Decimal("14.99"))  # 14.985 half-up
        self.assertEqual(line.tax_amount, Decimal("2.85"))  # 2.8481
        self.assertEqual(line.total, money(line.subtotal + line.subtotal * Decimal("19") / 100))

    def test_garbage_numbers_count_as_zero(self):
        line = line_totals({"quantity": "abc", "unit_price": None, "tax_rate": "NaN"})
        self.assertEqual(line.total, Decimal("0.00"))
        self.assertEqual(to_decimal("Infinity"), Decimal("0"))
        self.assertEqual(to_decimal(""), Decimal("0"))

    def test_values_too_large_to_round_count_as_zero(self):
        line = line_totals({"quantity": "1e30", "unit_price": "1", "tax_rate": "0"})
        self.assertEqual(line.total, Decimal("0.00"))
        self.assertEqual(money("1e40"), Decimal("0.00"))

        _, totals = calculate_totals([{"quantity": "1e30", "unit_price": "1"}], "fixed", "1e30")
        self.assertEqual(totals.total, Decimal("0.00"))

    def test_reads_object_attributes(self):
        class Item:
            quantity = Decimal("4")
            unit_price = Decimal("2.50")
            tax_rate = Decimal("0")
            discount_type = ""
            discount_value = Decimal("0")

        self.assertEqual(line_totals(Item()).total, Decimal("10.00"))


class DocumentTotalsTest(SimpleTestCase):
    ITEMS = [{"quantity": 2, "unit_price": 100, "tax_rate": 19}]

    def test_global_percentage_discount_after_tax_is_summed(self):
        _, totals = calculate_totals(self.ITEMS, "percentage", 10)
        self.assertEqual(totals.subtotal, Decimal("200.00"))
        self.assertEqual(totals.tax_total, Decimal("38.00"))
        self.assertEqual(totals.discount_total, Decimal("20.00"))
        self.assertEqual(totals.taxable_amount, Decimal("180.00"))
        self.assertEqual(totals.total, Decimal("218.00"))

    def test_global_fixed_discount(self):
        _, totals = calculate_totals(self.ITEMS, "fixed", "25.50")
        self.assertEqual(totals.discount_total, Decimal("25.50"))
        self.assertEqual(totals.total, Decimal("212.50"))

    def test_no_items_means_no_discount(self):
        lines, totals = calculate_totals([], "fixed", 50)
        self.assertEqual(lines, [])
        self.assertEqual(totals.discount_total, Decimal("0.00"))
        self.assertEqual(totals.total, Decimal("0.00"))

    def test_amount_due_subtracts_every_payment(self):
        payments = [
            {"amount": "100", "status": "completed"},
            {"amount": "18", "status": "pending"},
        ]
        _, totals = calculate_totals(self.ITEMS, "percentage", 10, payments)
        self.assertEqual(totals.amount_paid, Decimal("118.00"))
        self.assertEqual(totals.amount_due, Decimal("100.00"))
        self.assertEqual(totals.amount_due, totals.total - totals.amount_paid)

    def test_lines_are_summed(self):
        items = self.ITEMS + [{"quantity": 1, "unit_price": "10", "tax_rate": "5.5"}]
        lines, totals = calculate_totals(items)
        self.assertEqual(len(lines), 2)
        self.assertEqual(totals.subtotal, Decimal("210.00"))
        self.assertEqual(totals.tax_total, Decimal("38.55"))
        self.assertEqual(totals.total, Decimal("248.55"))


class PaymentStatusTest(SimpleTestCase):
    def _totals(self, paid):
        _, totals = calculate_totals(
            [{"quantity": 1, "unit_price": "218", "tax_rate": 0}], payments=[{"amount": paid}] if paid else []
        )
        return totals

    def test_partial(self):
        self.assertEqual(derive_payment_status("sent", self._totals("100")), "partial")

    def test_paid_when_nothing_due(self):
        self.assertEqual(derive_payment_status("partial", self._totals("218")), "paid")

    def test_overpaid_is_paid(self):
        self.assertEqual(derive_payment_status("sent", self._totals("300")), "paid")

    def test_unchanged_without_payment(self):
        self.assertEqual(derive_payment_status("sent", self._totals(None)), "sent")
