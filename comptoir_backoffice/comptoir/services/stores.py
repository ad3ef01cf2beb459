# comptoir/services/stores.py
"""
User-scoped record stores.

Every store is built for one authenticated user and only ever sees rows that
user owns; rows of other users behave as if they did not exist.
"""

from django.db.models import ProtectedError

from ..models import (
    Customer,
    Document,
    GoodsReceipt,
    InventoryCount,
    PaymentLog,
    Product,
    StockMovement,
    Supplier,
    SupplierOrder,
)
from .results import NotFound, ValidationFailure, require_user


class OwnedStore:
    model = None
    not_found_message = "Record not found"

    def __init__(self, user):
        self.user = require_user(user)

    def queryset(self):
        return self.model.objects.filter(owner=self.user)

    def list(self):
        return list(self.queryset())

    def get_by_id(self, pk, for_update=False):
        qs = self.queryset()
        if for_update:
            qs = qs.select_for_update()
        try:
            return qs.get(pk=pk)
        except (self.model.DoesNotExist, ValueError, TypeError):
            raise NotFound(self.not_found_message)

    def save(self, obj):
        """Insert when `obj` has no id, otherwise update it."""
        if obj.pk is None:
            obj.owner = self.user
        elif obj.owner_id != self.user.pk:
            raise NotFound(self.not_found_message)
        obj.full_clean()
        obj.save()
        return obj

    def delete(self, pk):
        obj = self.get_by_id(pk)
        try:
            obj.delete()
        except ProtectedError:
            raise ValidationFailure(f"{obj} is still referenced and cannot be deleted")
        return pk


class DocumentStore(OwnedStore):
    model = Document
    not_found_message = "Document not found"

    def queryset(self):
        return super().queryset().select_related("customer").prefetch_related("items", "payments", "conversions")

    def list(self, doc_type=None):
        qs = self.queryset()
        if doc_type:
            qs = qs.filter(type=doc_type)
        return list(qs)


class ProductStore(OwnedStore):
    model = Product
    not_found_message = "Product not found"


class CustomerStore(OwnedStore):
    model = Customer
    not_found_message = "Customer not found"


class SupplierStore(OwnedStore):
    model = Supplier
    not_found_message = "Supplier not found"


class SupplierOrderStore(OwnedStore):
    model = SupplierOrder
    not_found_message = "Supplier order not found"

    def queryset(self):
        return super().queryset().select_related("supplier").prefetch_related("items")


class GoodsReceiptStore(OwnedStore):
    model = GoodsReceipt
    not_found_message = "Goods receipt not found"

    def queryset(self):
        return super().queryset().prefetch_related("items")


class InventoryCountStore(OwnedStore):
    model = InventoryCount
    not_found_message = "Inventory count not found"

    def queryset(self):
        return super().queryset().prefetch_related("items")


class AppendOnlyStore(OwnedStore):
    """save() only inserts; delete() is refused."""

    def save(self, obj):
        if obj.pk is not None:
            raise ValidationFailure(f"{self.model._meta.verbose_name} records are append-only")
        obj.owner = self.user
        obj.full_clean()
        obj.save()
        return obj

    def delete(self, pk):
        raise ValidationFailure(f"{self.model._meta.verbose_name} records are append-only")


class StockMovementLog(AppendOnlyStore):
    model = StockMovement
    not_found_message = "Stock movement not found"

    def queryset(self):
        return super().queryset().select_related("product")

    def list_by_product(self, product_id):
        return list(self.queryset().filter(product_id=product_id))


class PaymentLogStore(AppendOnlyStore):
    model = PaymentLog
    not_found_message = "Payment log entry not found"
