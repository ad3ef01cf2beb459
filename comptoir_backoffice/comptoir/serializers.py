# comptoir/serializers.py
"""Model -> dict converters for the JSON views (Decimals and dates are left to DjangoJSONEncoder)."""
from django.forms.models import model_to_dict

from .models import (
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


def _plain(obj, exclude=("owner",)):
    data = model_to_dict(obj, exclude=list(exclude))
    data["id"] = obj.pk
    return data


def product_json(p: Product):
    data = _plain(p)
    data["is_low_stock"] = p.is_low_stock
    data["stock_value"] = p.stock_value
    return data


def customer_json(c: Customer):
    return _plain(c)


def supplier_json(s: Supplier):
    return _plain(s)


def document_json(d: Document):
    return {
        "id": d.pk,
        "type": d.type,
        "reference": d.reference,
        "status": d.status,
        "customer": d.customer_id,
        "customer_name": d.customer_name,
        "issue_date": d.issue_date,
        "due_date": d.due_date,
        "valid_until": d.valid_until,
        "payment_terms": d.payment_terms,
        "global_discount_type": d.global_discount_type,
        "global_discount_value": d.global_discount_value,
        "global_discount_reason": d.global_discount_reason,
        "subtotal": d.subtotal,
        "discount_total": d.discount_total,
        "taxable_amount": d.taxable_amount,
        "tax_total": d.tax_total,
        "total": d.total,
        "amount_paid": d.amount_paid,
        "amount_due": d.amount_due,
        "notes": d.notes,
        "terms_and_conditions": d.terms_and_conditions,
        "converted_from": d.converted_from_id,
        "converted_to": getattr(d.converted_to, "pk", None),
        "items": [
            {
                "id": i.pk,
                "position": i.position,
                "product": i.product_id,
                "description": i.description,
                "quantity": i.quantity,
                "unit": i.unit,
                "unit_price": i.unit_price,
                "tax_rate": i.tax_rate,
                "discount_type": i.discount_type,
                "discount_value": i.discount_value,
                "subtotal": i.subtotal,
                "tax_amount": i.tax_amount,
                "total": i.total,
            }
            for i in d.items.all()
        ],
        "payments": [
            {
                "id": p.pk,
                "amount": p.amount,
                "method": p.method,
                "date": p.date,
                "status": p.status,
                "reference": p.reference,
                "note": p.note,
            }
            for p in d.payments.all()
        ],
    }


def movement_json(m: StockMovement):
    data = _plain(m)
    data["product_name"] = m.product.name
    return data


def payment_log_json(e: PaymentLog):
    return _plain(e)


def supplier_order_json(o: SupplierOrder):
    data = _plain(o)
    data["items"] = [_plain(i, exclude=("order",)) for i in o.items.all()]
    return data


def goods_receipt_json(r: GoodsReceipt):
    data = _plain(r)
    data["items"] = [_plain(i, exclude=("receipt",)) for i in r.items.all()]
    return data


def inventory_count_json(c: InventoryCount):
    data = _plain(c)
    data["items"] = [
        dict(_plain(i, exclude=("count",)), difference=i.difference)
        for i in c.items.all()
    ]
    return data


def dashboard_json(summary):
    return dict(
        summary,
        recent_invoices=[
            {"id": d.pk, "reference": d.reference, "customer_name": d.customer_name,
             "issue_date": d.issue_date, "total": d.total, "status": d.status}
            for d in summary["recent_invoices"]
        ],
        recent_movements=[movement_json(m) for m in summary["recent_movements"]],
    )


def billing_settings_json(b):
    return _plain(b, exclude=("user",))
