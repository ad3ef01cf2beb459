from datetime import timedelta
from decimal import Decimal

from django.contrib.auth.models import User
from django.test import TestCase
from django.utils import timezone

from .models import Customer, Document, LineItem, Product, StockMovement
from .serializers import document_json
from .services.documents import (
    convert_quote_to_invoice,
    delete_document,
    get_document,
    list_documents,
    save_document,
)
from .services.stock import propagate_document_stock


class DocumentTestMixin:
    def setUp(self):
        self.user = User.objects.create_user(username="owner", password="password")
        self.customer = Customer.objects.create(owner=self.user, name="Client SARL")
        self.product = Product.objects.create(
            owner=self.user, reference="P-1", name="Tracked", selling_price=Decimal("100"),
            current_stock=Decimal("50"),
        )

    def save(self, **payload):
        result = save_document(self.user, payload)
        self.assertTrue(result.ok, result.error)
        return result.data


class SaveDocumentTest(DocumentTestMixin, TestCase):
    def test_totals_with_global_discount(self):
        doc = self.save(
            customer=self.customer.pk,
            global_discount_type="percentage",
            global_discount_value="10",
            items=[{"description": "Consulting", "quantity": 2, "unit_price": 100, "tax_rate": 19}],
        )
        self.assertEqual(doc.subtotal, Decimal("200.00"))
        self.assertEqual(doc.tax_total, Decimal("38.00"))
        self.assertEqual(doc.discount_total, Decimal("20.00"))
        self.assertEqual(doc.taxable_amount, Decimal("180.00"))
        self.assertEqual(doc.total, Decimal("218.00"))
        self.assertEqual(doc.amount_due, Decimal("218.00"))

        line = doc.items.get()
        self.assertEqual((line.subtotal, line.tax_amount, line.total),
                         (Decimal("200.00"), Decimal("38.00"), Decimal("238.00")))

    def test_defaults_resolved_on_create(self):
        doc = self.save(customer=self.customer.pk, items=[])
        today = timezone.localdate()
        self.assertEqual(doc.type, "invoice")
        self.assertEqual(doc.status, "draft")
        self.assertEqual(doc.reference, f"INV-{today:%Y%m}-0001")
        self.assertEqual(doc.customer_name, "Client SARL")
        self.assertEqual(doc.payment_terms, "30")
        self.assertEqual(doc.due_date, today + timedelta(days=30))

    def test_quotes_have_their_own_counter(self):
        self.save(items=[])
        quote = self.save(type="quote", items=[])
        self.assertTrue(quote.reference.startswith("QUO-"))
        self.assertTrue(quote.reference.endswith("-0001"))
        self.assertIsNotNone(quote.valid_until)

    def test_update_keeps_omitted_fields_and_lines(self):
        doc = self.save(notes="keep me", items=[{"quantity": 1, "unit_price": "10"}])
        updated = self.save(id=doc.pk, global_discount_type="fixed", global_discount_value="2")
        self.assertEqual(updated.notes, "keep me")
        self.assertEqual(updated.reference, doc.reference)
        self.assertEqual(updated.items.count(), 1)
        self.assertEqual(updated.total, Decimal("8.00"))

    def test_items_are_replaced_in_order(self):
        doc = self.save(items=[{"description": "old", "quantity": 1, "unit_price": 1}])
        updated = self.save(id=doc.pk, items=[
            {"description": "first", "quantity": 1, "unit_price": 1},
            {"description": "second", "quantity": 1, "unit_price": 2},
        ])
        self.assertEqual(
            list(updated.items.values_list("description", "position")),
            [("first", 0), ("second", 1)],
        )

    def test_rejected_payloads(self):
        for bad in (
            {"items": [{"quantity": "-1", "unit_price": 1}]},
            {"items": [{"quantity": 1, "unit_price": "-5"}]},
            {"type": "receipt"},
            {"status": "lost"},
            {"global_discount_type": "bogus"},
        ):
            result = save_document(self.user, bad)
            self.assertFalse(result.ok, bad)
            self.assertEqual(result.status_code, 400)
        self.assertFalse(Document.objects.exists())

    def test_oversized_numbers_are_rejected(self):
        for row in ({"quantity": "1", "unit_price": "1e30"}, {"quantity": "1e30", "unit_price": "1"}):
            result = save_document(self.user, {"status": "sent", "items": [row]})
            self.assertFalse(result.ok, row)
            self.assertEqual(result.status_code, 400)
        self.assertFalse(Document.objects.exists())

    def test_listing_serializes_without_extra_queries(self):
        quote = self.save(type="quote", items=[{"quantity": 1, "unit_price": 1}])
        convert_quote_to_invoice(self.user, quote.pk)
        self.save(items=[{"quantity": 2, "unit_price": 3}])

        documents = list_documents(self.user).data
        with self.assertNumQueries(0):
            rows = [document_json(d) for d in documents]
        converted = [r for r in rows if r["id"] == quote.pk][0]
        self.assertIsNotNone(converted["converted_to"])

    def test_unparsable_numbers_count_as_zero(self):
        doc = self.save(items=[{"quantity": "two", "unit_price": "", "tax_rate": None}])
        self.assertEqual(doc.total, Decimal("0.00"))

    def test_other_users_cannot_see_documents(self):
        doc = self.save(items=[])
        other = User.objects.create_user(username="other", password="password")
        self.assertEqual(get_document(other, doc.pk).status_code, 404)
        self.assertEqual(list_documents(other).data, [])
        self.assertFalse(save_document(other, {"id": doc.pk, "notes": "mine"}).ok)

    def test_list_filters_by_type(self):
        self.save(items=[])
        self.save(type="quote", items=[])
        self.assertEqual([d.type for d in list_documents(self.user, doc_type="quote").data], ["quote"])


class StockPropagationTest(DocumentTestMixin, TestCase):
    def test_finalized_invoice_takes_stock_out(self):
        doc = self.save(status="sent", items=[{"product": self.product.pk, "quantity": 5, "unit_price": 100}])
        self.product.refresh_from_db()
        self.assertEqual(self.product.current_stock, Decimal("45"))

        movement = StockMovement.objects.get()
        self.assertEqual((movement.type, movement.reason), ("out", "sale"))
        self.assertEqual(movement.quantity, Decimal("5"))
        self.assertEqual((movement.document_type, movement.document_id), ("invoice", doc.pk))

    def test_draft_and_quote_do_not_touch_stock(self):
        self.save(items=[{"product": self.product.pk, "quantity": 5, "unit_price": 1}])
        self.save(type="quote", status="sent", items=[{"product": self.product.pk, "quantity": 5, "unit_price": 1}])
        self.product.refresh_from_db()
        self.assertEqual(self.product.current_stock, Decimal("50"))
        self.assertFalse(StockMovement.objects.exists())

    def test_untracked_and_unlinked_lines_are_skipped(self):
        service = Product.objects.create(owner=self.user, name="Service", track_inventory=False)
        self.save(status="sent", items=[
            {"description": "free text", "quantity": 3, "unit_price": 1},
            {"product": service.pk, "quantity": 3, "unit_price": 1},
            {"product": self.product.pk, "quantity": 2, "unit_price": 1},
        ])
        self.assertEqual(StockMovement.objects.count(), 1)
        service.refresh_from_db()
        self.assertEqual(service.current_stock, Decimal("0"))

    def test_lines_on_one_product_share_a_movement(self):
        doc = self.save(status="sent", items=[
            {"product": self.product.pk, "quantity": 2, "unit_price": 1},
            {"product": self.product.pk, "quantity": 3, "unit_price": 1},
        ])
        movement = StockMovement.objects.get()
        self.assertEqual((movement.type, movement.quantity), ("out", Decimal("5")))
        self.assertEqual(movement.document_id, doc.pk)

        self.save(id=doc.pk, items=[
            {"product": self.product.pk, "quantity": 3, "unit_price": 1},
            {"product": self.product.pk, "quantity": 2, "unit_price": 1},
        ])
        self.assertEqual(StockMovement.objects.count(), 1)
        self.product.refresh_from_db()
        self.assertEqual(self.product.current_stock, Decimal("45"))

    def test_resaving_is_idempotent_and_edits_apply_the_delta(self):
        doc = self.save(status="sent", items=[{"product": self.product.pk, "quantity": 5, "unit_price": 1}])
        self.save(id=doc.pk, notes="touched")
        self.product.refresh_from_db()
        self.assertEqual(self.product.current_stock, Decimal("45"))

        self.save(id=doc.pk, items=[{"product": self.product.pk, "quantity": 3, "unit_price": 1}])
        self.product.refresh_from_db()
        self.assertEqual(self.product.current_stock, Decimal("47"))
        returned = StockMovement.objects.filter(type="in").get()
        self.assertEqual((returned.reason, returned.quantity), ("return", Decimal("2")))

    def test_failing_product_is_logged_and_others_applied(self):
        second = Product.objects.create(owner=self.user, name="Second", current_stock=Decimal("10"))
        doc = Document.objects.create(owner=self.user, status="sent", reference="MANUAL-1")
        LineItem.objects.create(document=doc, product=self.product, quantity=Decimal("1"))
        LineItem.objects.create(document=doc, product=second, quantity=Decimal("4"))

        # Stock was taken for the first product, which then stopped tracking inventory.
        StockMovement.objects.create(
            owner=self.user, product=self.product, type="out", quantity=Decimal("1"),
            reason="sale", document_type="invoice", document_id=doc.pk,
        )
        Product.objects.filter(pk=self.product.pk).update(track_inventory=False)

        with self.assertLogs("comptoir.services.stock", level="ERROR"):
            created = propagate_document_stock(self.user, doc)

        self.assertEqual([m.product_id for m in created], [second.pk])
        second.refresh_from_db()
        self.assertEqual(second.current_stock, Decimal("6"))

    def test_delete_returns_stock(self):
        doc = self.save(status="sent", items=[{"product": self.product.pk, "quantity": 5, "unit_price": 1}])
        result = delete_document(self.user, doc.pk)
        self.assertTrue(result.ok, result.error)
        self.product.refresh_from_db()
        self.assertEqual(self.product.current_stock, Decimal("50"))
        self.assertFalse(Document.objects.exists())
        self.assertEqual(StockMovement.objects.filter(type="in", reason="return").count(), 1)


class ConvertQuoteTest(DocumentTestMixin, TestCase):
    def test_convert_copies_lines_into_a_draft_invoice(self):
        quote = self.save(
            type="quote", customer=self.customer.pk, status="sent",
            global_discount_type="percentage", global_discount_value="10",
            items=[{"product": self.product.pk, "quantity": 2, "unit_price": 100, "tax_rate": 19}],
        )
        result = convert_quote_to_invoice(self.user, quote.pk)
        self.assertTrue(result.ok, result.error)
        invoice = result.data

        self.assertEqual(invoice.type, "invoice")
        self.assertEqual(invoice.status, "draft")
        self.assertTrue(invoice.reference.startswith("INV-"))
        self.assertEqual(invoice.issue_date, timezone.localdate())
        self.assertEqual(invoice.due_date, timezone.localdate() + timedelta(days=30))
        self.assertEqual(invoice.total, Decimal("218.00"))
        self.assertEqual(invoice.items.count(), 1)
        self.assertEqual(invoice.converted_from_id, quote.pk)

        quote.refresh_from_db()
        self.assertEqual(quote.status, "converted")
        self.assertEqual(quote.converted_to, invoice)

        self.product.refresh_from_db()
        self.assertEqual(self.product.current_stock, Decimal("50"))

    def test_convert_twice_or_an_invoice_fails(self):
        quote = self.save(type="quote", items=[])
        self.assertTrue(convert_quote_to_invoice(self.user, quote.pk).ok)
        self.assertFalse(convert_quote_to_invoice(self.user, quote.pk).ok)

        invoice = self.save(items=[])
        self.assertFalse(convert_quote_to_invoice(self.user, invoice.pk).ok)

    def test_converted_quote_is_frozen(self):
        quote = self.save(type="quote", items=[])
        convert_quote_to_invoice(self.user, quote.pk)
        self.assertFalse(save_document(self.user, {"id": quote.pk, "notes": "late edit"}).ok)


class OrderAndDeliveryTest(DocumentTestMixin, TestCase):
    def test_each_kind_has_its_own_counter(self):
        today = timezone.localdate()
        self.save(items=[])
        order = self.save(type="order", customer=self.customer.pk, items=[{"quantity": 2, "unit_price": 50}])
        delivery = self.save(type="delivery", items=[{"quantity": 2, "unit_price": 50}])
        second_order = self.save(type="order", items=[])

        self.assertEqual(order.reference, f"CMD-{today:%Y%m}-0001")
        self.assertEqual(second_order.reference, f"CMD-{today:%Y%m}-0002")
        self.assertEqual(delivery.reference, f"BL-{today:%Y%m}-0001")
        self.assertEqual(order.total, Decimal("100.00"))
        self.assertEqual(order.customer_name, "Client SARL")
        self.assertEqual(order.due_date, today + timedelta(days=30))
        self.assertIsNone(delivery.due_date)
        self.assertIsNone(delivery.valid_until)

    def test_orders_and_deliveries_leave_stock_alone(self):
        order = self.save(type="order", status="sent", items=[{"product": self.product.pk, "quantity": 5}])
        self.save(type="delivery", status="sent", items=[{"product": self.product.pk, "quantity": 5}])
        self.product.refresh_from_db()
        self.assertEqual(self.product.current_stock, Decimal("50"))

        self.assertTrue(delete_document(self.user, order.pk).ok)
        self.assertFalse(StockMovement.objects.exists())

    def test_listing_and_status_rules(self):
        self.save(type="order", items=[])
        self.save(type="delivery", items=[])
        self.assertEqual([d.type for d in list_documents(self.user, doc_type="delivery").data], ["delivery"])
        self.assertFalse(save_document(self.user, {"type": "order", "status": "converted"}).ok)
        self.assertEqual(get_document(self.user, 987654).status_code, 404)
