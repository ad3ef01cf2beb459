from decimal import Decimal
from unittest import mock

from django.contrib.auth.models import AnonymousUser, User
from django.test import TestCase

from .models import Document, Payment, PaymentLog
from .services.documents import save_document
from .services.payments import list_payment_log, record_payment


class RecordPaymentTest(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="owner", password="password")
        self.invoice = save_document(self.user, {
            "status": "sent",
            "global_discount_type": "percentage",
            "global_discount_value": "10",
            "items": [{"description": "Work", "quantity": 2, "unit_price": 100, "tax_rate": 19}],
        }).data

    def test_partial_payment(self):
        result = record_payment(self.user, self.invoice.pk, {"amount": "100", "method": "bank_transfer"})
        self.assertTrue(result.ok, result.error)
        doc = result.data
        self.assertEqual(doc.total, Decimal("218.00"))
        self.assertEqual(doc.amount_paid, Decimal("100.00"))
        self.assertEqual(doc.amount_due, Decimal("118.00"))
        self.assertEqual(doc.status, "partial")
        self.assertEqual(doc.payments.count(), 1)

    def test_full_payment_marks_paid(self):
        record_payment(self.user, self.invoice.pk, {"amount": "100"})
        doc = record_payment(self.user, self.invoice.pk, {"amount": "118"}).data
        self.assertEqual(doc.amount_due, Decimal("0.00"))
        self.assertEqual(doc.status, "paid")

    def test_payment_is_logged(self):
        record_payment(self.user, self.invoice.pk, {"amount": "50", "reference": "CHQ-1"})
        entry = PaymentLog.objects.get()
        self.assertEqual(entry.owner, self.user)
        self.assertEqual(entry.document_reference, self.invoice.reference)
        self.assertEqual(entry.amount, Decimal("50.00"))
        self.assertEqual(entry.reference, "CHQ-1")
        self.assertEqual(len(list_payment_log(self.user).data), 1)

    def test_log_failure_keeps_the_payment(self):
        with mock.patch("comptoir.services.payments._log_payment", side_effect=RuntimeError("disk full")):
            with self.assertLogs("comptoir.services.payments", level="ERROR"):
                result = record_payment(self.user, self.invoice.pk, {"amount": "10"})
        self.assertTrue(result.ok, result.error)
        self.assertEqual(Payment.objects.count(), 1)
        self.assertFalse(PaymentLog.objects.exists())

    def test_amount_must_be_positive(self):
        for amount in ("0", "-5", "abc", None):
            result = record_payment(self.user, self.invoice.pk, {"amount": amount})
            self.assertFalse(result.ok, amount)
            self.assertEqual(result.status_code, 400)
        self.assertFalse(Payment.objects.exists())

    def test_only_invoices_take_payments(self):
        for doc_type in ("quote", "order", "delivery"):
            doc = save_document(self.user, {"type": doc_type, "items": []}).data
            result = record_payment(self.user, doc.pk, {"amount": "10"})
            self.assertFalse(result.ok, doc_type)
            self.assertEqual(result.status_code, 400)

    def test_unknown_or_foreign_invoice(self):
        self.assertEqual(record_payment(self.user, 999999, {"amount": "10"}).status_code, 404)
        other = User.objects.create_user(username="other", password="password")
        self.assertEqual(record_payment(other, self.invoice.pk, {"amount": "10"}).status_code, 404)
        self.assertEqual(Document.objects.get().amount_paid, Decimal("0.00"))

    def test_anonymous(self):
        self.assertEqual(record_payment(AnonymousUser(), self.invoice.pk, {"amount": "10"}).status_code, 401)
