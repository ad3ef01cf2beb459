# comptoir/models.py
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models, transaction
from django.utils import timezone

from .services.numbering import (
    DEFAULT_DELIVERY_FORMAT,
    DEFAULT_INVOICE_FORMAT,
    DEFAULT_ORDER_FORMAT,
    DEFAULT_QUOTE_FORMAT,
    generate_document_number,
)
from .services.totals import calculate_totals, line_totals, money

DECIMAL_12_2 = {"max_digits": 12, "decimal_places": 2}
DECIMAL_18_6 = {"max_digits": 18, "decimal_places": 6}  # quantities
RATE_5_2 = {"max_digits": 5, "decimal_places": 2}       # percentages


# --------------------------------
# Core mixins / shared choices
# --------------------------------
class OwnedRecord(models.Model):
    """Every business record belongs to exactly one user; stores filter on it."""
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="%(class)s_owned"
    )
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class DiscountType(models.TextChoices):
    NONE = "", "No discount"
    PERCENTAGE = "percentage", "Percentage"
    FIXED = "fixed", "Fixed amount"


# --------------------------------
# Per-user settings
# --------------------------------
class BillingSettings(models.Model):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="billing_settings"
    )
    invoice_number_format = models.CharField(max_length=60, default=DEFAULT_INVOICE_FORMAT)
    quote_number_format = models.CharField(max_length=60, default=DEFAULT_QUOTE_FORMAT)
    order_number_format = models.CharField(max_length=60, default=DEFAULT_ORDER_FORMAT)
    delivery_number_format = models.CharField(max_length=60, default=DEFAULT_DELIVERY_FORMAT)
    next_invoice_number = models.PositiveIntegerField(default=1)
    next_quote_number = models.PositiveIntegerField(default=1)
    next_order_number = models.PositiveIntegerField(default=1)
    next_delivery_number = models.PositiveIntegerField(default=1)
    default_payment_terms = models.CharField(max_length=20, default="30")
    default_tax_rate = models.DecimalField(**RATE_5_2, default=Decimal("19.00"))
    default_notes = models.TextField(blank=True, default="")
    default_terms_and_conditions = models.TextField(blank=True, default="")
    updated_at = models.DateTimeField(auto_now=True)

    # document type -> (format field, counter field)
    NUMBERING_FIELDS = {
        "invoice": ("invoice_number_format", "next_invoice_number"),
        "quote": ("quote_number_format", "next_quote_number"),
        "order": ("order_number_format", "next_order_number"),
        "delivery": ("delivery_number_format", "next_delivery_number"),
    }

    class Meta:
        verbose_name = "Billing settings"
        verbose_name_plural = "Billing settings"

    def __str__(self):
        return f"Billing settings for {self.user}"

    @classmethod
    def for_user(cls, user) -> "BillingSettings":
        conf = getattr(settings, "COMPTOIR", {})
        obj, _ = cls.objects.get_or_create(
            user=user,
            defaults={
                "default_tax_rate": Decimal(str(conf.get("DEFAULT_TAX_RATE", "19"))),
                "default_payment_terms": str(conf.get("DEFAULT_PAYMENT_TERMS_DAYS", 30)),
            },
        )
        return obj

    @transaction.atomic
    def take_next_reference(self, doc_type: str, today=None) -> str:
        """Format the next reference for `doc_type` and persist its incremented counter."""
        format_field, counter_field = self.NUMBERING_FIELDS.get(doc_type, self.NUMBERING_FIELDS["invoice"])
        locked = BillingSettings.objects.select_for_update().get(pk=self.pk)
        sequence = getattr(locked, counter_field)
        reference = generate_document_number(getattr(locked, format_field), sequence, today)
        setattr(locked, counter_field, sequence + 1)
        locked.save(update_fields=[counter_field, "updated_at"])
        setattr(self, counter_field, sequence + 1)
        return reference


# --------------------------------
# Parties
# --------------------------------
class Customer(OwnedRecord):
    class Kind(models.TextChoices):
        INDIVIDUAL = "individual", "Individual"
        COMPANY = "company", "Company"

    kind = models.CharField(max_length=12, choices=Kind.choices, default=Kind.COMPANY)
    name = models.CharField(max_length=200)
    contact_person = models.CharField(max_length=120, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    phone = models.CharField(max_length=40, blank=True, default="")
    address = models.TextField(blank=True, default="")
    tax_id = models.CharField(max_length=40, blank=True, default="")
    customer_code = models.CharField(max_length=40, blank=True, default="")
    payment_terms = models.CharField(max_length=20, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name


class Supplier(OwnedRecord):
    name = models.CharField(max_length=200)
    contact_person = models.CharField(max_length=120, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    phone = models.CharField(max_length=40, blank=True, default="")
    address = models.TextField(blank=True, default="")
    tax_id = models.CharField(max_length=40, blank=True, default="")
    payment_terms = models.CharField(max_length=20, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name


# --------------------------------
# Products
# --------------------------------
class Product(OwnedRecord):
    reference = models.CharField(max_length=60, blank=True, default="", db_index=True)
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, default="")
    category = models.CharField(max_length=80, blank=True, default="")
    unit = models.CharField(max_length=20, blank=True, default="")
    barcode = models.CharField(max_length=64, blank=True, default="")
    purchase_price = models.DecimalField(**DECIMAL_12_2, default=Decimal("0.00"),
                                         validators=[MinValueValidator(Decimal("0"))])
    selling_price = models.DecimalField(**DECIMAL_12_2, default=Decimal("0.00"),
                                        validators=[MinValueValidator(Decimal("0"))])
    tax_rate = models.DecimalField(**RATE_5_2, default=Decimal("0.00"))
    track_inventory = models.BooleanField(default=True)
    current_stock = models.DecimalField(**DECIMAL_18_6, default=Decimal("0"))
    min_stock_level = models.DecimalField(**DECIMAL_18_6, default=Decimal("0"))
    max_stock_level = models.DecimalField(**DECIMAL_18_6, default=Decimal("0"))
    supplier = models.ForeignKey(
        Supplier, null=True, blank=True, on_delete=models.SET_NULL, related_name="products"
    )

    class Meta:
        ordering = ["name", "id"]
        indexes = [models.Index(fields=["owner", "reference"], name="product_owner_ref_idx")]

    def __str__(self):
        return f"{self.reference} - {self.name}" if self.reference else self.name

    @property
    def is_low_stock(self) -> bool:
        return self.track_inventory and self.current_stock <= self.min_stock_level

    @property
    def stock_value(self) -> Decimal:
        return money(self.current_stock * self.purchase_price)


# --------------------------------
# Invoices & quotes
# --------------------------------
class Document(OwnedRecord):
    class Type(models.TextChoices):
        INVOICE = "invoice", "Invoice"
        QUOTE = "quote", "Quote"
        ORDER = "order", "Customer order"
        DELIVERY = "delivery", "Delivery note"

    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        SENT = "sent", "Sent"
        PARTIAL = "partial", "Partially paid"
        PAID = "paid", "Paid"
        CONVERTED = "converted", "Converted"

    type = models.CharField(max_length=10, choices=Type.choices, default=Type.INVOICE, db_index=True)
    reference = models.CharField(max_length=60, blank=True, default="", db_index=True)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.DRAFT, db_index=True)
    customer = models.ForeignKey(
        Customer, null=True, blank=True, on_delete=models.SET_NULL, related_name="documents"
    )
    customer_name = models.CharField(max_length=200, blank=True, default="")

    issue_date = models.DateField(default=timezone.localdate, db_index=True)
    due_date = models.DateField(null=True, blank=True)
    valid_until = models.DateField(null=True, blank=True)
    payment_terms = models.CharField(max_length=20, blank=True, default="")

    global_discount_type = models.CharField(max_length=12, choices=DiscountType.choices, blank=True, default="")
    global_discount_value = models.DecimalField(**DECIMAL_12_2, default=Decimal("0.00"),
                                                validators=[MinValueValidator(Decimal("0"))])
    global_discount_reason = models.CharField(max_length=200, blank=True, default="")

    # computed by recompute_totals()
    subtotal = models.DecimalField(**DECIMAL_12_2, default=Decimal("0.00"))
    discount_total = models.DecimalField(**DECIMAL_12_2, default=Decimal("0.00"))
    taxable_amount = models.DecimalField(**DECIMAL_12_2, default=Decimal("0.00"))
    tax_total = models.DecimalField(**DECIMAL_12_2, default=Decimal("0.00"))
    total = models.DecimalField(**DECIMAL_12_2, default=Decimal("0.00"))
    amount_paid = models.DecimalField(**DECIMAL_12_2, default=Decimal("0.00"))
    amount_due = models.DecimalField(**DECIMAL_12_2, default=Decimal("0.00"))

    notes = models.TextField(blank=True, default="")
    terms_and_conditions = models.TextField(blank=True, default="")
    converted_from = models.ForeignKey(
        "self", null=True, blank=True, on_delete=models.SET_NULL, related_name="conversions"
    )

    class Meta:
        ordering = ["-issue_date", "-id"]
        indexes = [models.Index(fields=["owner", "type", "status"], name="document_owner_type_status_idx")]

    def __str__(self):
        return self.reference or f"{self.get_type_display()} #{self.pk}"

    @property
    def is_draft(self) -> bool:
        return self.status == self.Status.DRAFT

    @property
    def converted_to(self):
        """The invoice this quote was converted into, if any."""
        if not self.pk:
            return None
        # .all() so a prefetched `conversions` is read without a query
        return min(self.conversions.all(), key=lambda d: d.pk, default=None)

    def recompute_totals(self, items=None, payments=None, save_items=True):
        """
        Recompute line and document totals in place.

        `items` / `payments` default to what is stored for this document.
        Line totals are written back with one bulk_update when `save_items`.
        """
        if items is None:
            items = list(self.items.all()) if self.pk else []
        if payments is None:
            payments = list(self.payments.all()) if self.pk else []

        lines, totals = calculate_totals(
            items, self.global_discount_type, self.global_discount_value, payments
        )
        for item, line in zip(items, lines):
            item.subtotal = line.subtotal
            item.tax_amount = line.tax_amount
            item.total = line.total
        if save_items:
            saved = [i for i in items if i.pk]
            if saved:
                LineItem.objects.bulk_update(saved, ["subtotal", "tax_amount", "total"])

        self.subtotal = totals.subtotal
        self.discount_total = totals.discount_total
        self.taxable_amount = totals.taxable_amount
        self.tax_total = totals.tax_total
        self.total = totals.total
        self.amount_paid = totals.amount_paid
        self.amount_due = totals.amount_due
        return totals


class LineItem(models.Model):
    document = models.ForeignKey(Document, on_delete=models.CASCADE, related_name="items")
    position = models.PositiveIntegerField(default=0)
    product = models.ForeignKey(
        Product, null=True, blank=True, on_delete=models.SET_NULL, related_name="line_items"
    )
    description = models.CharField(max_length=255, blank=True, default="")
    quantity = models.DecimalField(**DECIMAL_18_6, default=Decimal("1"),
                                   validators=[MinValueValidator(Decimal("0"))])
    unit = models.CharField(max_length=20, blank=True, default="")
    unit_price = models.DecimalField(**DECIMAL_12_2, default=Decimal("0.00"),
                                     validators=[MinValueValidator(Decimal("0"))])
    tax_rate = models.DecimalField(**RATE_5_2, default=Decimal("0.00"))
    discount_type = models.CharField(max_length=12, choices=DiscountType.choices, blank=True, default="")
    discount_value = models.DecimalField(**DECIMAL_12_2, default=Decimal("0.00"),
                                         validators=[MinValueValidator(Decimal("0"))])

    subtotal = models.DecimalField(**DECIMAL_12_2, default=Decimal("0.00"))
    tax_amount = models.DecimalField(**DECIMAL_12_2, default=Decimal("0.00"))
    total = models.DecimalField(**DECIMAL_12_2, default=Decimal("0.00"))

    class Meta:
        ordering = ["position", "id"]

    def __str__(self):
        return f"{self.document} / {self.description or self.product}"


# --------------------------------
# Payments
# --------------------------------
class PaymentMethod(models.TextChoices):
    CASH = "cash", "Cash"
    CHECK = "check", "Check"
    BANK_TRANSFER = "bank_transfer", "Bank transfer"
    CREDIT_CARD = "credit_card", "Credit card"
    MOBILE_PAYMENT = "mobile_payment", "Mobile payment"
    OTHER = "other", "Other"


class PaymentStatus(models.TextChoices):
    COMPLETED = "completed", "Completed"
    PENDING = "pending", "Pending"


class Payment(models.Model):
    document = models.ForeignKey(Document, on_delete=models.CASCADE, related_name="payments")
    amount = models.DecimalField(**DECIMAL_12_2, validators=[MinValueValidator(Decimal("0.01"))])
    method = models.CharField(max_length=20, choices=PaymentMethod.choices, default=PaymentMethod.CASH)
    date = models.DateField(default=timezone.localdate)
    status = models.CharField(max_length=10, choices=PaymentStatus.choices, default=PaymentStatus.COMPLETED)
    reference = models.CharField(max_length=100, blank=True, default="")
    note = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["date", "id"]

    def __str__(self):
        return f"{self.amount} ({self.get_method_display()}) on {self.document}"


class AppendOnlyModel(models.Model):
    """Rows are written once; later saves are refused."""

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        if self.pk is not None and type(self).objects.filter(pk=self.pk).exists():
            raise ValidationError(f"{self._meta.verbose_name} records cannot be modified.")
        return super().save(*args, **kwargs)


class PaymentLog(AppendOnlyModel):
    owner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="payment_logs")
    payment = models.ForeignKey(Payment, null=True, blank=True, on_delete=models.SET_NULL, related_name="log_entries")
    document = models.ForeignKey(Document, null=True, blank=True, on_delete=models.SET_NULL, related_name="payment_logs")
    document_reference = models.CharField(max_length=60, blank=True, default="")
    amount = models.DecimalField(**DECIMAL_12_2)
    method = models.CharField(max_length=20, choices=PaymentMethod.choices)
    date = models.DateField()
    status = models.CharField(max_length=10, choices=PaymentStatus.choices)
    reference = models.CharField(max_length=100, blank=True, default="")
    note = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.document_reference}: {self.amount}"


# --------------------------------
# Stock
# --------------------------------
class StockMovement(AppendOnlyModel):
    class Type(models.TextChoices):
        IN = "in", "In"
        OUT = "out", "Out"
        ADJUSTMENT = "adjustment", "Adjustment"

    class Reason(models.TextChoices):
        PURCHASE = "purchase", "Purchase"
        SALE = "sale", "Sale"
        RETURN = "return", "Return"
        DAMAGE = "damage", "Damage"
        INVENTORY = "inventory", "Inventory"
        TRANSFER = "transfer", "Transfer"
        PRODUCTION = "production", "Production"
        OTHER = "other", "Other"

    class SourceType(models.TextChoices):
        NONE = "", "None"
        INVOICE = "invoice", "Invoice"
        GOODS_RECEIPT = "goods_receipt", "Goods receipt"
        INVENTORY_COUNT = "inventory_count", "Inventory count"

    owner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="stock_movements")
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="movements")
    type = models.CharField(max_length=12, choices=Type.choices)
    quantity = models.DecimalField(**DECIMAL_18_6, validators=[MinValueValidator(Decimal("0"))])
    reason = models.CharField(max_length=12, choices=Reason.choices, default=Reason.OTHER)
    document_id = models.PositiveBigIntegerField(null=True, blank=True, db_index=True)
    document_type = models.CharField(max_length=20, choices=SourceType.choices, blank=True, default="")
    note = models.TextField(blank=True, default="")
    date = models.DateTimeField(default=timezone.now, db_index=True)
    stock_after = models.DecimalField(**DECIMAL_18_6, null=True, blank=True)

    class Meta:
        ordering = ["-date", "-id"]
        indexes = [models.Index(fields=["document_type", "document_id"], name="stockmove_document_idx")]

    def __str__(self):
        return f"{self.get_type_display()} {self.quantity} x {self.product}"

    @property
    def signed_quantity(self) -> Decimal:
        """Net effect on stock for in/out rows; adjustments have no signed delta."""
        if self.type == self.Type.IN:
            return self.quantity
        if self.type == self.Type.OUT:
            return -self.quantity
        return Decimal("0")


# --------------------------------
# Purchasing
# --------------------------------
class SupplierOrder(OwnedRecord):
    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        SENT = "sent", "Sent"
        PARTIAL = "partial", "Partially received"
        RECEIVED = "received", "Received"
        CANCELLED = "cancelled", "Cancelled"

    reference = models.CharField(max_length=60, blank=True, default="", db_index=True)
    supplier = models.ForeignKey(Supplier, on_delete=models.PROTECT, related_name="orders")
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.DRAFT)
    order_date = models.DateField(default=timezone.localdate)
    expected_delivery_date = models.DateField(null=True, blank=True)
    subtotal = models.DecimalField(**DECIMAL_12_2, default=Decimal("0.00"))
    tax_amount = models.DecimalField(**DECIMAL_12_2, default=Decimal("0.00"))
    shipping_cost = models.DecimalField(**DECIMAL_12_2, default=Decimal("0.00"),
                                        validators=[MinValueValidator(Decimal("0"))])
    total_amount = models.DecimalField(**DECIMAL_12_2, default=Decimal("0.00"))
    notes = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["-order_date", "-id"]

    def __str__(self):
        return self.reference or f"PO #{self.pk}"

    def recompute_totals(self, items=None):
        if items is None:
            items = list(self.items.all()) if self.pk else []
        lines = [line_totals(i) for i in items]
        for item, line in zip(items, lines):
            item.total = line.total
        self.subtotal = money(sum((l.subtotal for l in lines), Decimal("0")))
        self.tax_amount = money(sum((l.tax_amount for l in lines), Decimal("0")))
        self.total_amount = money(self.subtotal + self.tax_amount + (self.shipping_cost or Decimal("0")))
        return self.total_amount


class SupplierOrderItem(models.Model):
    order = models.ForeignKey(SupplierOrder, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(Product, null=True, blank=True, on_delete=models.SET_NULL, related_name="order_items")
    description = models.CharField(max_length=255, blank=True, default="")
    quantity = models.DecimalField(**DECIMAL_18_6, default=Decimal("1"),
                                   validators=[MinValueValidator(Decimal("0"))])
    unit_price = models.DecimalField(**DECIMAL_12_2, default=Decimal("0.00"),
                                     validators=[MinValueValidator(Decimal("0"))])
    tax_rate = models.DecimalField(**RATE_5_2, default=Decimal("0.00"))
    total = models.DecimalField(**DECIMAL_12_2, default=Decimal("0.00"))

    class Meta:
        ordering = ["id"]


class GoodsReceipt(OwnedRecord):
    reference = models.CharField(max_length=60, blank=True, default="")
    supplier_order = models.ForeignKey(
        SupplierOrder, null=True, blank=True, on_delete=models.SET_NULL, related_name="receipts"
    )
    received_date = models.DateField(default=timezone.localdate)
    is_complete = models.BooleanField(default=False)
    notes = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["-received_date", "-id"]

    def __str__(self):
        return self.reference or f"Receipt #{self.pk}"


class GoodsReceiptItem(models.Model):
    receipt = models.ForeignKey(GoodsReceipt, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="receipt_items")
    ordered_quantity = models.DecimalField(**DECIMAL_18_6, default=Decimal("0"))
    received_quantity = models.DecimalField(**DECIMAL_18_6, default=Decimal("0"),
                                            validators=[MinValueValidator(Decimal("0"))])
    lot_number = models.CharField(max_length=60, blank=True, default="")
    expiry_date = models.DateField(null=True, blank=True)

    class Meta:
        ordering = ["id"]


# --------------------------------
# Inventory counts
# --------------------------------
class InventoryCount(OwnedRecord):
    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        IN_PROGRESS = "in_progress", "In progress"
        COMPLETED = "completed", "Completed"

    reference = models.CharField(max_length=60, blank=True, default="")
    status = models.CharField(max_length=12, choices=Status.choices, default=Status.DRAFT)
    start_date = models.DateField(default=timezone.localdate)
    end_date = models.DateField(null=True, blank=True)
    notes = models.TextField(blank=True, default="")
    applied_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-start_date", "-id"]

    def __str__(self):
        return self.reference or f"Count #{self.pk}"


class InventoryCountItem(models.Model):
    count = models.ForeignKey(InventoryCount, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="count_items")
    expected_quantity = models.DecimalField(**DECIMAL_18_6, default=Decimal("0"))
    counted_quantity = models.DecimalField(**DECIMAL_18_6, default=Decimal("0"),
                                           validators=[MinValueValidator(Decimal("0"))])
    notes = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        ordering = ["id"]

    @property
    def difference(self) -> Decimal:
        return (self.counted_quantity or Decimal("0")) - (self.expected_quantity or Decimal("0"))
