from datetime import date

from django.contrib.auth.models import User
from django.test import SimpleTestCase, TestCase, override_settings

from .models import BillingSettings, Document
from .services.numbering import calculate_due_date, generate_document_number


class GenerateDocumentNumberTest(SimpleTestCase):
    today = date(2024, 3, 7)

    def test_default_invoice_format(self):
        self.assertEqual(
            generate_document_number("INV-{YEAR}{MONTH}-{SEQUENCE}", 12, self.today),
            "INV-202403-0012",
        )

    def test_day_and_repeated_placeholders(self):
        self.assertEqual(
            generate_document_number("{SEQUENCE}/{DAY}.{MONTH}.{YEAR}/{SEQUENCE}", 5, self.today),
            "0005/07.03.2024/0005",
        )

    def test_formatting_a_formatted_string_is_a_noop(self):
        once = generate_document_number("QUO-{YEAR}-{SEQUENCE}", 3, self.today)
        self.assertEqual(generate_document_number(once, 99, self.today), once)

    def test_empty_format_falls_back(self):
        self.assertEqual(generate_document_number("", 42, self.today), "DOC-42")
        self.assertEqual(generate_document_number(None, 7, self.today), "DOC-7")

    def test_long_sequence_is_not_truncated(self):
        self.assertEqual(generate_document_number("{SEQUENCE}", 123456, self.today), "123456")


class DueDateTest(SimpleTestCase):
    def test_numeric_terms(self):
        self.assertEqual(calculate_due_date(date(2024, 1, 31), "15"), date(2024, 2, 15))

    def test_unparsable_terms_use_default(self):
        self.assertEqual(calculate_due_date(date(2024, 1, 1), "net"), date(2024, 1, 31))

    @override_settings(COMPTOIR={"DEFAULT_PAYMENT_TERMS_DAYS": 45})
    def test_configured_default(self):
        self.assertEqual(calculate_due_date(date(2024, 1, 1), None), date(2024, 2, 15))


class BillingSettingsTest(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="owner", password="password")

    def test_created_with_user(self):
        billing = BillingSettings.objects.get(user=self.user)
        self.assertEqual(billing.next_invoice_number, 1)
        self.assertEqual(billing.invoice_number_format, "INV-{YEAR}{MONTH}-{SEQUENCE}")

    def test_take_next_reference_increments_its_own_counter(self):
        billing = BillingSettings.for_user(self.user)
        today = date(2024, 5, 1)

        self.assertEqual(billing.take_next_reference(Document.Type.INVOICE, today), "INV-202405-0001")
        self.assertEqual(billing.take_next_reference(Document.Type.INVOICE, today), "INV-202405-0002")
        self.assertEqual(billing.take_next_reference(Document.Type.QUOTE, today), "QUO-202405-0001")

        billing.refresh_from_db()
        self.assertEqual(billing.next_invoice_number, 3)
        self.assertEqual(billing.next_quote_number, 2)

    def test_orders_and_delivery_notes_have_their_own_counters(self):
        billing = BillingSettings.for_user(self.user)
        today = date(2024, 5, 1)

        self.assertEqual(billing.take_next_reference(Document.Type.INVOICE, today), "INV-202405-0001")
        self.assertEqual(billing.take_next_reference(Document.Type.ORDER, today), "CMD-202405-0001")
        self.assertEqual(billing.take_next_reference(Document.Type.ORDER, today), "CMD-202405-0002")
        self.assertEqual(billing.take_next_reference(Document.Type.DELIVERY, today), "BL-202405-0001")

        billing.refresh_from_db()
        self.assertEqual(
            (billing.next_invoice_number, billing.next_quote_number,
             billing.next_order_number, billing.next_delivery_number),
            (2, 1, 3, 2),
        )
