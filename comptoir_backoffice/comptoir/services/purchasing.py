# comptoir/services/purchasing.py
from django.db import transaction

from ..forms import SupplierOrderForm, SupplierOrderItemForm, validated, validated_items
from ..models import SupplierOrder, SupplierOrderItem
from .results import ValidationFailure, require_user, service_operation
from .stores import SupplierOrderStore


@service_operation
def list_supplier_orders(user, status=None):
    orders = SupplierOrderStore(user).queryset()
    if status:
        orders = orders.filter(status=status)
    return list(orders)


@service_operation
def save_supplier_order(user, payload):
    """
    Create or update a supplier order with its items and totals.
    Items are replaced when the payload carries an `items` list.
    """
    require_user(user)
    payload = payload or {}
    store = SupplierOrderStore(user)
    instance = store.get_by_id(payload["id"]) if payload.get("id") else None
    if instance is not None and instance.status in (SupplierOrder.Status.RECEIVED, SupplierOrder.Status.CANCELLED):
        raise ValidationFailure(f"A {instance.get_status_display().lower()} order cannot be changed")

    order = validated(SupplierOrderForm, payload, instance=instance, owner=user)

    if "items" in payload:
        items = validated_items(SupplierOrderItemForm, payload["items"], owner=user)
    else:
        items = list(order.items.all()) if order.pk else []

    with transaction.atomic():
        order.recompute_totals(items)
        store.save(order)
        if "items" in payload:
            order.items.all().delete()
            for item in items:
                item.order = order
                item.save()
        else:
            SupplierOrderItem.objects.bulk_update(items, ["total"])
    return store.get_by_id(order.pk)


@service_operation
def delete_supplier_order(user, order_id):
    order = SupplierOrderStore(user).get_by_id(order_id)
    if order.receipts.exists():
        raise ValidationFailure("An order with goods receipts cannot be deleted")
    order.delete()
    return order_id
