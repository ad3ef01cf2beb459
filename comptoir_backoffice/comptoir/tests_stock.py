from decimal import Decimal

from django.contrib.auth.models import AnonymousUser, User
from django.core.exceptions import ValidationError
from django.test import TestCase, override_settings

from .models import GoodsReceipt, InventoryCount, Product, StockMovement, Supplier, SupplierOrder
from .services.results import ValidationFailure
from .services.stock import (
    apply_stock_movement,
    list_stock_movements,
    next_quantity,
    save_goods_receipt,
    save_inventory_count,
)
from .services.stores import StockMovementLog


class NextQuantityTest(TestCase):
    def test_in_out_adjustment(self):
        self.assertEqual(next_quantity("in", Decimal("10"), Decimal("2.5")), Decimal("12.5"))
        self.assertEqual(next_quantity("out", Decimal("10"), Decimal("12")), Decimal("-2"))
        self.assertEqual(next_quantity("adjustment", Decimal("10"), Decimal("3")), Decimal("3"))

    def test_unknown_type(self):
        with self.assertRaises(ValidationFailure):
            next_quantity("sideways", 1, 1)


class StockMovementApplierTest(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="owner", password="password")
        self.product = Product.objects.create(
            owner=self.user, reference="SKU-1", name="Widget", current_stock=Decimal("50")
        )

    def apply(self, **payload):
        payload.setdefault("product", self.product.pk)
        return apply_stock_movement(self.user, payload)

    def test_in_adds_exactly(self):
        result = self.apply(type="in", quantity="7.5", reason="purchase")
        self.assertTrue(result.ok, result.error)
        self.product.refresh_from_db()
        self.assertEqual(self.product.current_stock, Decimal("57.5"))
        self.assertEqual(result.data.stock_after, Decimal("57.5"))
        self.assertEqual(result.data.owner, self.user)

    def test_out_subtracts_and_may_go_negative(self):
        with self.assertLogs("comptoir.services.stock", level="WARNING"):
            result = self.apply(type="out", quantity="60", reason="sale")
        self.assertTrue(result.ok, result.error)
        self.product.refresh_from_db()
        self.assertEqual(self.product.current_stock, Decimal("-10"))

    def test_adjustment_overwrites(self):
        result = self.apply(type="adjustment", quantity="12", reason="inventory")
        self.assertTrue(result.ok, result.error)
        self.product.refresh_from_db()
        self.assertEqual(self.product.current_stock, Decimal("12"))

    @override_settings(COMPTOIR={"ALLOW_NEGATIVE_STOCK": False})
    def test_negative_stock_can_be_refused(self):
        result = self.apply(type="out", quantity="51")
        self.assertFalse(result.ok)
        self.assertEqual(result.status_code, 400)
        self.product.refresh_from_db()
        self.assertEqual(self.product.current_stock, Decimal("50"))
        self.assertFalse(StockMovement.objects.exists())

    def test_untracked_product_is_refused(self):
        self.product.track_inventory = False
        self.product.save()
        result = self.apply(type="in", quantity="1")
        self.assertFalse(result.ok)
        self.assertIn("does not track inventory", result.error)

    def test_bad_payloads(self):
        self.assertFalse(self.apply(type="in", quantity="-1").ok)
        self.assertFalse(self.apply(type="teleport", quantity="1").ok)
        self.assertFalse(self.apply(type="in", quantity="1", reason="gift").ok)

    def test_garbage_quantity_counts_as_zero(self):
        result = self.apply(type="in", quantity="lots")
        self.assertTrue(result.ok, result.error)
        self.assertEqual(result.data.quantity, Decimal("0"))

    def test_products_of_other_users_are_invisible(self):
        other = User.objects.create_user(username="other", password="password")
        result = apply_stock_movement(other, {"product": self.product.pk, "type": "in", "quantity": "1"})
        self.assertFalse(result.ok)
        self.product.refresh_from_db()
        self.assertEqual(self.product.current_stock, Decimal("50"))

    def test_requires_authenticated_user(self):
        result = apply_stock_movement(AnonymousUser(), {"product": self.product.pk, "type": "in", "quantity": "1"})
        self.assertFalse(result.ok)
        self.assertEqual(result.status_code, 401)

    def test_movements_are_append_only(self):
        movement = self.apply(type="in", quantity="1").data
        movement.note = "edited"
        with self.assertRaises(ValidationError):
            movement.save()
        with self.assertRaises(ValidationFailure):
            StockMovementLog(self.user).save(movement)

    def test_list_by_product(self):
        other = Product.objects.create(owner=self.user, name="Other")
        self.apply(type="in", quantity="1")
        self.apply(type="in", quantity="2", product=other.pk)

        self.assertEqual(len(list_stock_movements(self.user).data), 2)
        by_product = list_stock_movements(self.user, product_id=other.pk).data
        self.assertEqual([m.quantity for m in by_product], [Decimal("2")])


class GoodsReceiptTest(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="owner", password="password")
        self.supplier = Supplier.objects.create(owner=self.user, name="Acme")
        self.order = SupplierOrder.objects.create(owner=self.user, supplier=self.supplier, status="sent")
        self.tracked = Product.objects.create(owner=self.user, name="Bolt", current_stock=Decimal("5"))
        self.untracked = Product.objects.create(owner=self.user, name="Service", track_inventory=False)

    def test_receipt_adds_stock_and_marks_order(self):
        result = save_goods_receipt(self.user, {
            "supplier_order": self.order.pk,
            "reference": "GR-1",
            "is_complete": False,
            "items": [
                {"product": self.tracked.pk, "ordered_quantity": "20", "received_quantity": "8"},
                {"product": self.untracked.pk, "received_quantity": "1"},
            ],
        })
        self.assertTrue(result.ok, result.error)

        self.tracked.refresh_from_db()
        self.untracked.refresh_from_db()
        self.assertEqual(self.tracked.current_stock, Decimal("13"))
        self.assertEqual(self.untracked.current_stock, Decimal("0"))

        movement = StockMovement.objects.get()
        self.assertEqual((movement.type, movement.reason), ("in", "purchase"))
        self.assertEqual(movement.document_type, "goods_receipt")
        self.assertEqual(movement.document_id, result.data.pk)

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, "partial")

    def test_complete_receipt_marks_order_received(self):
        result = save_goods_receipt(self.user, {
            "supplier_order": self.order.pk,
            "is_complete": True,
            "items": [{"product": self.tracked.pk, "received_quantity": "20"}],
        })
        self.assertTrue(result.ok, result.error)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, "received")

    def test_receipt_needs_items(self):
        result = save_goods_receipt(self.user, {"reference": "GR-empty", "items": []})
        self.assertFalse(result.ok)
        self.assertFalse(GoodsReceipt.objects.exists())


class InventoryCountTest(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="owner", password="password")
        self.a = Product.objects.create(owner=self.user, name="A", current_stock=Decimal("10"))
        self.b = Product.objects.create(owner=self.user, name="B", current_stock=Decimal("4"))

    def test_draft_count_does_not_touch_stock(self):
        result = save_inventory_count(self.user, {
            "reference": "INV-COUNT-1",
            "items": [{"product": self.a.pk, "counted_quantity": "7"}],
        })
        self.assertTrue(result.ok, result.error)
        item = result.data.items.get()
        self.assertEqual(item.expected_quantity, Decimal("10"))
        self.assertEqual(item.difference, Decimal("-3"))
        self.a.refresh_from_db()
        self.assertEqual(self.a.current_stock, Decimal("10"))

    def test_completing_applies_adjustments_once(self):
        count = save_inventory_count(self.user, {
            "items": [
                {"product": self.a.pk, "counted_quantity": "7"},
                {"product": self.b.pk, "counted_quantity": "4"},
            ],
        }).data

        result = save_inventory_count(self.user, {"id": count.pk, "status": "completed"})
        self.assertTrue(result.ok, result.error)
        self.assertIsNotNone(result.data.applied_at)

        self.a.refresh_from_db()
        self.b.refresh_from_db()
        self.assertEqual(self.a.current_stock, Decimal("7"))
        self.assertEqual(self.b.current_stock, Decimal("4"))

        movement = StockMovement.objects.get()
        self.assertEqual((movement.type, movement.reason), ("adjustment", "inventory"))
        self.assertEqual(movement.product, self.a)

        again = save_inventory_count(self.user, {"id": count.pk, "status": "completed"})
        self.assertFalse(again.ok)
        self.assertEqual(StockMovement.objects.count(), 1)
        self.assertEqual(InventoryCount.objects.get().status, "completed")
