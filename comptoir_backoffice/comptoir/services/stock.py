# comptoir/services/stock.py
"""
Stock movements and everything that emits them.

Products hold the on-hand quantity; every change goes through `_apply`, which
writes one immutable StockMovement and then updates the product under a row
lock. Invoices, goods receipts and inventory counts only ever produce
movements.
"""
import logging
from collections import defaultdict
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from ..forms import (
    GoodsReceiptForm,
    GoodsReceiptItemForm,
    InventoryCountForm,
    InventoryCountItemForm,
    StockMovementForm,
    validated,
    validated_items,
)
from ..models import Document, InventoryCount, Product, StockMovement, SupplierOrder
from .results import NotFound, ValidationFailure, require_user, service_operation
from .stores import GoodsReceiptStore, InventoryCountStore, StockMovementLog
from .totals import to_decimal

logger = logging.getLogger(__name__)

Type = StockMovement.Type
Reason = StockMovement.Reason
Source = StockMovement.SourceType


def negative_stock_allowed() -> bool:
    return bool(getattr(settings, "COMPTOIR", {}).get("ALLOW_NEGATIVE_STOCK", True))


def next_quantity(movement_type: str, current, quantity) -> Decimal:
    """in adds, out subtracts, adjustment overwrites."""
    current = to_decimal(current)
    quantity = to_decimal(quantity)
    if movement_type == Type.IN:
        return current + quantity
    if movement_type == Type.OUT:
        return current - quantity
    if movement_type == Type.ADJUSTMENT:
        return quantity
    raise ValidationFailure(f"Unknown movement type: {movement_type}")


def _apply(user, movement: StockMovement) -> StockMovement:
    with transaction.atomic():
        try:
            product = Product.objects.select_for_update().get(pk=movement.product_id, owner=user)
        except Product.DoesNotExist:
            raise NotFound("Product not found")

        if not product.track_inventory:
            raise ValidationFailure(f"{product} does not track inventory")

        new_stock = next_quantity(movement.type, product.current_stock, movement.quantity)
        if new_stock < 0:
            if not negative_stock_allowed():
                raise ValidationFailure(
                    f"Insufficient stock for {product}: {product.current_stock} on hand"
                )
            logger.warning("Stock of product %s goes negative: %s", product.pk, new_stock)

        movement.stock_after = new_stock
        StockMovementLog(user).save(movement)

        product.current_stock = new_stock
        product.save(update_fields=["current_stock", "updated_at"])

    logger.debug("Applied %s %s to product %s -> %s",
                 movement.type, movement.quantity, product.pk, new_stock)
    return movement


@service_operation
def apply_stock_movement(user, payload):
    """Validate a movement payload, record it and update the product's stock."""
    require_user(user)
    movement = validated(StockMovementForm, payload, owner=user)
    return _apply(user, movement)


@service_operation
def list_stock_movements(user, product_id=None):
    log = StockMovementLog(user)
    if product_id:
        return log.list_by_product(product_id)
    return log.list()


# ---------- invoices ----------
def _stock_taken(user, document) -> dict:
    """Net quantity already taken out of stock for `document`, per product."""
    taken = defaultdict(Decimal)
    movements = StockMovement.objects.filter(
        owner=user, document_type=Source.INVOICE, document_id=document.pk
    )
    for m in movements:
        taken[m.product_id] -= m.signed_quantity
    return taken


def _stock_required(user, document) -> dict:
    """Line quantities summed per tracked product; lines are rewritten on save, products are stable."""
    required = defaultdict(Decimal)
    for item in document.items.select_related("product"):
        product = item.product
        if product is None or product.owner_id != user.pk:
            continue
        if not product.track_inventory:
            continue
        if item.quantity and item.quantity > 0:
            required[product.pk] += item.quantity
    return required


def reconcile_document_stock(user, document, required=None):
    """
    Emit the movements that bring the stock taken for `document` to `required`
    (defaults to the quantities on its lines). A product that fails is logged
    and skipped; the others are still applied.
    """
    if required is None:
        required = _stock_required(user, document)
    taken = _stock_taken(user, document)

    created = []
    for product_id in sorted(set(required) | set(taken)):
        delta = required.get(product_id, Decimal("0")) - taken.get(product_id, Decimal("0"))
        if delta == 0:
            continue
        if delta > 0:
            movement_type, reason = Type.OUT, Reason.SALE
        else:
            movement_type, reason = Type.IN, Reason.RETURN
        movement = StockMovement(
            product_id=product_id,
            type=movement_type,
            quantity=abs(delta),
            reason=reason,
            document_id=document.pk,
            document_type=Source.INVOICE,
            note=f"Invoice {document.reference}".strip(),
        )
        try:
            created.append(_apply(user, movement))
        except Exception:
            logger.error("Stock update for product %s from document %s failed",
                         product_id, document.pk, exc_info=True)
    return created


def propagate_document_stock(user, document):
    """Take stock out for a finalized invoice; drafts and quotes are left alone."""
    if document.pk is None or document.type != Document.Type.INVOICE or document.is_draft:
        return []
    return reconcile_document_stock(user, document)


def release_document_stock(user, document):
    """Return to stock everything previously taken out for `document`."""
    return reconcile_document_stock(user, document, required={})


# ---------- goods receipts ----------
@service_operation
def save_goods_receipt(user, payload):
    require_user(user)
    payload = payload or {}
    if payload.get("id"):
        raise ValidationFailure("Recorded goods receipts cannot be changed")

    receipt = validated(GoodsReceiptForm, payload, owner=user)
    items = validated_items(GoodsReceiptItemForm, payload.get("items"), owner=user)
    if not items:
        raise ValidationFailure("A goods receipt needs at least one item")

    with transaction.atomic():
        GoodsReceiptStore(user).save(receipt)
        for item in items:
            item.receipt = receipt
            item.save()

    for item in items:
        if item.received_quantity <= 0:
            continue
        if not item.product.track_inventory:
            logger.info("Skipping untracked product %s on receipt %s", item.product_id, receipt.pk)
            continue
        movement = StockMovement(
            product=item.product,
            type=Type.IN,
            quantity=item.received_quantity,
            reason=Reason.PURCHASE,
            document_id=receipt.pk,
            document_type=Source.GOODS_RECEIPT,
            note=f"Goods receipt {receipt.reference}".strip(),
        )
        try:
            _apply(user, movement)
        except Exception:
            logger.error("Receiving product %s on receipt %s failed",
                         item.product_id, receipt.pk, exc_info=True)

    order = receipt.supplier_order
    if order is not None:
        order.status = SupplierOrder.Status.RECEIVED if receipt.is_complete else SupplierOrder.Status.PARTIAL
        order.save(update_fields=["status", "updated_at"])

    return receipt


@service_operation
def list_goods_receipts(user):
    return GoodsReceiptStore(user).list()


# ---------- inventory counts ----------
def apply_inventory_count(user, count: InventoryCount):
    """Set each counted product to its counted quantity, once per count."""
    if count.applied_at is not None:
        return []

    movements = []
    for item in count.items.select_related("product"):
        if item.difference == 0 or not item.product.track_inventory:
            continue
        movement = StockMovement(
            product=item.product,
            type=Type.ADJUSTMENT,
            quantity=item.counted_quantity,
            reason=Reason.INVENTORY,
            document_id=count.pk,
            document_type=Source.INVENTORY_COUNT,
            note=f"Inventory count {count.reference}".strip(),
        )
        try:
            movements.append(_apply(user, movement))
        except Exception:
            logger.error("Adjusting product %s from count %s failed",
                         item.product_id, count.pk, exc_info=True)

    count.applied_at = timezone.now()
    count.end_date = count.end_date or timezone.localdate()
    count.save(update_fields=["applied_at", "end_date", "updated_at"])
    return movements


@service_operation
def save_inventory_count(user, payload):
    require_user(user)
    payload = payload or {}
    store = InventoryCountStore(user)
    instance = store.get_by_id(payload["id"]) if payload.get("id") else None
    if instance is not None and instance.applied_at is not None:
        raise ValidationFailure("A completed inventory count cannot be changed")

    count = validated(InventoryCountForm, payload, instance=instance, owner=user)

    items = None
    if "items" in payload:
        rows = payload["items"]
        items = validated_items(InventoryCountItemForm, rows, owner=user)
        for row, item in zip(rows, items):
            if "expected_quantity" not in row:
                item.expected_quantity = item.product.current_stock

    with transaction.atomic():
        store.save(count)
        if items is not None:
            count.items.all().delete()
            for item in items:
                item.count = count
                item.save()

    if count.status == InventoryCount.Status.COMPLETED:
        apply_inventory_count(user, count)
    return store.get_by_id(count.pk)


@service_operation
def list_inventory_counts(user):
    return InventoryCountStore(user).list()

