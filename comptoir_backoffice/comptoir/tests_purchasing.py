from decimal import Decimal
from io import StringIO

from django.contrib.auth.models import User
from django.core.management import call_command
from django.test import TestCase

from .models import Document, GoodsReceipt, LineItem, Product, Supplier, SupplierOrder
from .services.catalog import (
    delete_product,
    delete_supplier,
    list_products,
    save_customer,
    save_product,
    save_supplier,
)
from .services.purchasing import delete_supplier_order, list_supplier_orders, save_supplier_order
from .services.stock import apply_stock_movement


class CatalogTest(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="owner", password="password")

    def test_save_and_update_product(self):
        product = save_product(self.user, {"name": "Rake", "selling_price": "12.499", "current_stock": "3"}).data
        self.assertEqual(product.owner, self.user)
        self.assertEqual(product.selling_price, Decimal("12.50"))

        updated = save_product(self.user, {"id": product.pk, "category": "Garden"}).data
        self.assertEqual(updated.name, "Rake")
        self.assertEqual(updated.category, "Garden")

    def test_low_stock_listing(self):
        save_product(self.user, {"name": "Plenty", "current_stock": "50", "min_stock_level": "5"})
        save_product(self.user, {"name": "Scarce", "current_stock": "2", "min_stock_level": "5"})
        names = [p.name for p in list_products(self.user, low_stock_only=True).data]
        self.assertEqual(names, ["Scarce"])

    def test_names_are_required(self):
        self.assertFalse(save_product(self.user, {"name": ""}).ok)
        self.assertFalse(save_customer(self.user, {"name": "   "}).ok)
        self.assertFalse(save_supplier(self.user, {}).ok)

    def test_product_with_movements_cannot_be_deleted(self):
        product = Product.objects.create(owner=self.user, name="Moved", current_stock=Decimal("1"))
        apply_stock_movement(self.user, {"product": product.pk, "type": "in", "quantity": "1"})

        result = delete_product(self.user, product.pk)
        self.assertFalse(result.ok)
        self.assertEqual(result.status_code, 400)
        self.assertTrue(Product.objects.filter(pk=product.pk).exists())

    def test_supplier_with_orders_cannot_be_deleted(self):
        supplier = Supplier.objects.create(owner=self.user, name="Acme")
        SupplierOrder.objects.create(owner=self.user, supplier=supplier)
        self.assertFalse(delete_supplier(self.user, supplier.pk).ok)


class SupplierOrderTest(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="owner", password="password")
        self.supplier = Supplier.objects.create(owner=self.user, name="Acme")

    def test_totals_include_shipping(self):
        result = save_supplier_order(self.user, {
            "supplier": self.supplier.pk,
            "shipping_cost": "15",
            "items": [
                {"description": "Bolts", "quantity": "10", "unit_price": "2", "tax_rate": "10"},
                {"description": "Nuts", "quantity": "4", "unit_price": "5"},
            ],
        })
        self.assertTrue(result.ok, result.error)
        order = result.data
        self.assertEqual(order.subtotal, Decimal("40.00"))
        self.assertEqual(order.tax_amount, Decimal("2.00"))
        self.assertEqual(order.total_amount, Decimal("57.00"))
        self.assertEqual([i.total for i in order.items.all()], [Decimal("22.00"), Decimal("20.00")])

    def test_header_update_keeps_items(self):
        order = save_supplier_order(self.user, {
            "supplier": self.supplier.pk,
            "items": [{"quantity": "1", "unit_price": "10"}],
        }).data
        updated = save_supplier_order(self.user, {"id": order.pk, "shipping_cost": "5", "status": "sent"}).data
        self.assertEqual(updated.items.count(), 1)
        self.assertEqual(updated.total_amount, Decimal("15.00"))
        self.assertEqual([o.pk for o in list_supplier_orders(self.user, status="sent").data], [order.pk])

    def test_received_orders_are_frozen(self):
        order = SupplierOrder.objects.create(owner=self.user, supplier=self.supplier, status="received")
        self.assertFalse(save_supplier_order(self.user, {"id": order.pk, "notes": "late"}).ok)

    def test_orders_with_receipts_cannot_be_deleted(self):
        order = SupplierOrder.objects.create(owner=self.user, supplier=self.supplier)
        GoodsReceipt.objects.create(owner=self.user, supplier_order=order)
        self.assertFalse(delete_supplier_order(self.user, order.pk).ok)

        empty = SupplierOrder.objects.create(owner=self.user, supplier=self.supplier)
        self.assertTrue(delete_supplier_order(self.user, empty.pk).ok)
        self.assertFalse(SupplierOrder.objects.filter(pk=empty.pk).exists())


class RecalculateCommandTest(TestCase):
    def test_recomputes_stale_totals(self):
        user = User.objects.create_user(username="owner", password="password")
        doc = Document.objects.create(owner=user, reference="OLD-1", total=Decimal("1.00"))
        LineItem.objects.create(document=doc, quantity=Decimal("2"), unit_price=Decimal("7.50"))

        out = StringIO()
        call_command("recalculate_document_totals", "--user", "owner", stdout=out)

        doc.refresh_from_db()
        self.assertEqual(doc.total, Decimal("15.00"))
        self.assertEqual(doc.amount_due, Decimal("15.00"))
        self.assertIn("Recalculated 1 documents (1 changed)", out.getvalue())
