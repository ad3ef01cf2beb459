# comptoir/forms.py
"""
Payload validation.

Service operations receive plain dicts (decoded JSON); each record type has a
ModelForm that resolves defaults, parses numbers and rejects bad values.
Blank or unparsable numbers are read as 0 rather than rejected.
"""
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django import forms
from django.core.exceptions import ValidationError
from django.forms.models import model_to_dict

from .models import (
    BillingSettings,
    Customer,
    Document,
    GoodsReceipt,
    GoodsReceiptItem,
    InventoryCount,
    InventoryCountItem,
    LineItem,
    Payment,
    Product,
    StockMovement,
    Supplier,
    SupplierOrder,
    SupplierOrderItem,
)
from .services.results import ValidationFailure


class LenientDecimalField(forms.DecimalField):
    """DecimalField that reads blank/garbage/NaN as 0 and rounds to `places`."""

    def __init__(self, *args, places=2, **kwargs):
        self.places = places
        kwargs.setdefault("required", False)
        super().__init__(*args, **kwargs)

    def to_python(self, value):
        try:
            value = super().to_python(value)
        except ValidationError:
            value = None
        if value is None or not value.is_finite():
            value = Decimal("0")
        try:
            return value.quantize(Decimal(1).scaleb(-self.places), rounding=ROUND_HALF_UP)
        except InvalidOperation:
            raise ValidationError("Ensure this value is not that large.", code="max_digits")


def money_field(**kwargs):
    return LenientDecimalField(places=2, **kwargs)


def quantity_field(**kwargs):
    return LenientDecimalField(places=6, **kwargs)


class OwnedModelForm(forms.ModelForm):
    """ModelForm whose foreign-key choices are limited to the owner's rows."""
    owned_fields = ()

    def __init__(self, *args, owner=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.owner = owner
        for name in self.owned_fields:
            field = self.fields.get(name)
            if field is not None:
                field.queryset = field.queryset.filter(owner=owner)


# ---------- parties ----------
class CustomerForm(OwnedModelForm):
    class Meta:
        model = Customer
        fields = ["kind", "name", "contact_person", "email", "phone", "address",
                  "tax_id", "customer_code", "payment_terms", "notes"]

    def clean_name(self):
        name = (self.cleaned_data.get("name") or "").strip()
        if not name:
            raise forms.ValidationError("Name is required.")
        return name


class SupplierForm(OwnedModelForm):
    class Meta:
        model = Supplier
        fields = ["name", "contact_person", "email", "phone", "address",
                  "tax_id", "payment_terms", "notes"]

    def clean_name(self):
        name = (self.cleaned_data.get("name") or "").strip()
        if not name:
            raise forms.ValidationError("Name is required.")
        return name


# ---------- products ----------
class ProductForm(OwnedModelForm):
    owned_fields = ("supplier",)

    purchase_price = money_field(min_value=0)
    selling_price = money_field(min_value=0)
    tax_rate = money_field(min_value=0)
    current_stock = quantity_field()
    min_stock_level = quantity_field(min_value=0)
    max_stock_level = quantity_field(min_value=0)

    class Meta:
        model = Product
        fields = ["reference", "name", "description", "category", "unit", "barcode",
                  "purchase_price", "selling_price", "tax_rate", "track_inventory",
                  "current_stock", "min_stock_level", "max_stock_level", "supplier"]


# ---------- documents ----------
class DocumentForm(OwnedModelForm):
    owned_fields = ("customer",)

    global_discount_value = money_field(min_value=0)

    class Meta:
        model = Document
        fields = ["type", "reference", "status", "customer", "customer_name",
                  "issue_date", "due_date", "valid_until", "payment_terms",
                  "global_discount_type", "global_discount_value", "global_discount_reason",
                  "notes", "terms_and_conditions"]

    def clean(self):
        cleaned = super().clean()
        doc_type = cleaned.get("type")
        status = cleaned.get("status")
        if doc_type != Document.Type.QUOTE and status == Document.Status.CONVERTED:
            self.add_error("status", "Only quotes can be marked as converted.")
        customer = cleaned.get("customer")
        if customer and not cleaned.get("customer_name"):
            cleaned["customer_name"] = customer.name
        return cleaned


class LineItemForm(OwnedModelForm):
    owned_fields = ("product",)

    quantity = quantity_field(min_value=0)
    unit_price = money_field(min_value=0)
    tax_rate = money_field(min_value=0)
    discount_value = money_field(min_value=0)

    class Meta:
        model = LineItem
        fields = ["product", "description", "quantity", "unit", "unit_price",
                  "tax_rate", "discount_type", "discount_value"]

    def clean(self):
        cleaned = super().clean()
        product = cleaned.get("product")
        if product and not cleaned.get("description"):
            cleaned["description"] = product.name
        return cleaned


class PaymentForm(forms.ModelForm):
    amount = money_field()

    class Meta:
        model = Payment
        fields = ["amount", "method", "date", "status", "reference", "note"]

    def clean_amount(self):
        amount = self.cleaned_data.get("amount")
        if amount is None or amount <= 0:
            raise forms.ValidationError("Payment amount must be greater than zero.")
        return amount


class BillingSettingsForm(forms.ModelForm):
    default_tax_rate = money_field(min_value=0)

    class Meta:
        model = BillingSettings
        fields = ["invoice_number_format", "quote_number_format",
                  "order_number_format", "delivery_number_format",
                  "next_invoice_number", "next_quote_number",
                  "next_order_number", "next_delivery_number",
                  "default_payment_terms", "default_tax_rate",
                  "default_notes", "default_terms_and_conditions"]


# ---------- stock ----------
class StockMovementForm(OwnedModelForm):
    owned_fields = ("product",)

    quantity = quantity_field(min_value=0)

    class Meta:
        model = StockMovement
        fields = ["product", "type", "quantity", "reason", "document_id",
                  "document_type", "note", "date"]


# ---------- purchasing ----------
class SupplierOrderForm(OwnedModelForm):
    owned_fields = ("supplier",)

    shipping_cost = money_field(min_value=0)

    class Meta:
        model = SupplierOrder
        fields = ["reference", "supplier", "status", "order_date",
                  "expected_delivery_date", "shipping_cost", "notes"]


class SupplierOrderItemForm(OwnedModelForm):
    owned_fields = ("product",)

    quantity = quantity_field(min_value=0)
    unit_price = money_field(min_value=0)
    tax_rate = money_field(min_value=0)

    class Meta:
        model = SupplierOrderItem
        fields = ["product", "description", "quantity", "unit_price", "tax_rate"]


class GoodsReceiptForm(OwnedModelForm):
    owned_fields = ("supplier_order",)

    class Meta:
        model = GoodsReceipt
        fields = ["reference", "supplier_order", "received_date", "is_complete", "notes"]


class GoodsReceiptItemForm(OwnedModelForm):
    owned_fields = ("product",)

    ordered_quantity = quantity_field(min_value=0)
    received_quantity = quantity_field(min_value=0)

    class Meta:
        model = GoodsReceiptItem
        fields = ["product", "ordered_quantity", "received_quantity", "lot_number", "expiry_date"]


class InventoryCountForm(OwnedModelForm):
    class Meta:
        model = InventoryCount
        fields = ["reference", "status", "start_date", "end_date", "notes"]


class InventoryCountItemForm(OwnedModelForm):
    owned_fields = ("product",)

    expected_quantity = quantity_field()
    counted_quantity = quantity_field(min_value=0)

    class Meta:
        model = InventoryCountItem
        fields = ["product", "expected_quantity", "counted_quantity", "notes"]


# ---------- helpers used by the services ----------
def bind(form_class, payload, instance=None, owner=None):
    """
    Bind `payload` over the current values of `instance` (or over the model
    defaults for a new record), so omitted keys keep their value.
    """
    fields = list(form_class._meta.fields)
    base = instance if instance is not None else form_class._meta.model()
    data = model_to_dict(base, fields=fields)
    data.update({k: v for k, v in (payload or {}).items() if k in fields})
    kwargs = {"data": data, "instance": instance}
    if issubclass(form_class, OwnedModelForm):
        kwargs["owner"] = owner
    return form_class(**kwargs)


def form_errors(form, prefix=""):
    return {f"{prefix}{field}": [e["message"] for e in errs]
            for field, errs in form.errors.get_json_data().items()}


def validated(form_class, payload, instance=None, owner=None, prefix=""):
    """Return the unsaved instance for a valid payload, else raise ValidationFailure."""
    if payload is not None and not isinstance(payload, dict):
        raise ValidationFailure("Expected an object")
    form = bind(form_class, payload, instance=instance, owner=owner)
    if not form.is_valid():
        errors = form_errors(form, prefix)
        message = "; ".join(f"{field}: {' '.join(msgs)}" for field, msgs in errors.items())
        raise ValidationFailure(message, errors=errors)
    return form.save(commit=False)


def validated_items(form_class, rows, owner=None, name="items"):
    """Validate a list of child payloads; errors are keyed `items[0].quantity`."""
    if rows is None:
        return []
    if not isinstance(rows, (list, tuple)):
        raise ValidationFailure(f"{name} must be a list")
    return [
        validated(form_class, row, owner=owner, prefix=f"{name}[{index}].")
        for index, row in enumerate(rows)
    ]
