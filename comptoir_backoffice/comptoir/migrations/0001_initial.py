from decimal import Decimal

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


DISCOUNT_CHOICES = [("", "No discount"), ("percentage", "Percentage"), ("fixed", "Fixed amount")]
PAYMENT_METHOD_CHOICES = [
    ("cash", "Cash"),
    ("check", "Check"),
    ("bank_transfer", "Bank transfer"),
    ("credit_card", "Credit card"),
    ("mobile_payment", "Mobile payment"),
    ("other", "Other"),
]
PAYMENT_STATUS_CHOICES = [("completed", "Completed"), ("pending", "Pending")]


def owner_field(related_name):
    return models.ForeignKey(
        on_delete=django.db.models.deletion.CASCADE,
        related_name=related_name,
        to=settings.AUTH_USER_MODEL,
    )


def min_zero(value="0"):
    return [django.core.validators.MinValueValidator(Decimal(value))]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="BillingSettings",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("invoice_number_format", models.CharField(default="INV-{YEAR}{MONTH}-{SEQUENCE}", max_length=60)),
                ("quote_number_format", models.CharField(default="QUO-{YEAR}{MONTH}-{SEQUENCE}", max_length=60)),
                ("next_invoice_number", models.PositiveIntegerField(default=1)),
                ("next_quote_number", models.PositiveIntegerField(default=1)),
                ("default_payment_terms", models.CharField(default="30", max_length=20)),
                ("default_tax_rate", models.DecimalField(decimal_places=2, default=Decimal("19.00"), max_digits=5)),
                ("default_notes", models.TextField(blank=True, default="")),
                ("default_terms_and_conditions", models.TextField(blank=True, default="")),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("user", models.OneToOneField(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="billing_settings",
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                "verbose_name": "Billing settings",
                "verbose_name_plural": "Billing settings",
            },
        ),
        migrations.CreateModel(
            name="Customer",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("kind", models.CharField(choices=[("individual", "Individual"), ("company", "Company")], default="company", max_length=12)),
                ("name", models.CharField(max_length=200)),
                ("contact_person", models.CharField(blank=True, default="", max_length=120)),
                ("email", models.EmailField(blank=True, default="", max_length=254)),
                ("phone", models.CharField(blank=True, default="", max_length=40)),
                ("address", models.TextField(blank=True, default="")),
                ("tax_id", models.CharField(blank=True, default="", max_length=40)),
                ("customer_code", models.CharField(blank=True, default="", max_length=40)),
                ("payment_terms", models.CharField(blank=True, default="", max_length=20)),
                ("notes", models.TextField(blank=True, default="")),
                ("owner", owner_field("customer_owned")),
            ],
            options={"ordering": ["name"]},
        ),
        migrations.CreateModel(
            name="Supplier",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=200)),
                ("contact_person", models.CharField(blank=True, default="", max_length=120)),
                ("email", models.EmailField(blank=True, default="", max_length=254)),
                ("phone", models.CharField(blank=True, default="", max_length=40)),
                ("address", models.TextField(blank=True, default="")),
                ("tax_id", models.CharField(blank=True, default="", max_length=40)),
                ("payment_terms", models.CharField(blank=True, default="", max_length=20)),
                ("notes", models.TextField(blank=True, default="")),
                ("owner", owner_field("supplier_owned")),
            ],
            options={"ordering": ["name"]},
        ),
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("reference", models.CharField(blank=True, db_index=True, default="", max_length=60)),
                ("name", models.CharField(max_length=200)),
                ("description", models.TextField(blank=True, default="")),
                ("category", models.CharField(blank=True, default="", max_length=80)),
                ("unit", models.CharField(blank=True, default="", max_length=20)),
                ("barcode", models.CharField(blank=True, default="", max_length=64)),
                ("purchase_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12, validators=min_zero())),
                ("selling_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12, validators=min_zero())),
                ("tax_rate", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=5)),
                ("track_inventory", models.BooleanField(default=True)),
                ("current_stock", models.DecimalField(decimal_places=6, default=Decimal("0"), max_digits=18)),
                ("min_stock_level", models.DecimalField(decimal_places=6, default=Decimal("0"), max_digits=18)),
                ("max_stock_level", models.DecimalField(decimal_places=6, default=Decimal("0"), max_digits=18)),
                ("owner", owner_field("product_owned")),
                ("supplier", models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="products",
                    to="comptoir.supplier",
                )),
            ],
            options={
                "ordering": ["name", "id"],
                "indexes": [models.Index(fields=["owner", "reference"], name="product_owner_ref_idx")],
            },
        ),
        migrations.CreateModel(
            name="Document",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("type", models.CharField(choices=[("invoice", "Invoice"), ("quote", "Quote")], db_index=True, default="invoice", max_length=10)),
                ("reference", models.CharField(blank=True, db_index=True, default="", max_length=60)),
                ("status", models.CharField(
                    choices=[
                        ("draft", "Draft"),
                        ("sent", "Sent"),
                        ("partial", "Partially paid"),
                        ("paid", "Paid"),
                        ("converted", "Converted"),
                    ],
                    db_index=True, default="draft", max_length=10,
                )),
                ("customer_name", models.CharField(blank=True, default="", max_length=200)),
                ("issue_date", models.DateField(db_index=True, default=django.utils.timezone.localdate)),
                ("due_date", models.DateField(blank=True, null=True)),
                ("valid_until", models.DateField(blank=True, null=True)),
                ("payment_terms", models.CharField(blank=True, default="", max_length=20)),
                ("global_discount_type", models.CharField(blank=True, choices=DISCOUNT_CHOICES, default="", max_length=12)),
                ("global_discount_value", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12, validators=min_zero())),
                ("global_discount_reason", models.CharField(blank=True, default="", max_length=200)),
                ("subtotal", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("discount_total", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("taxable_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("tax_total", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("total", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("amount_paid", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("amount_due", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("notes", models.TextField(blank=True, default="")),
                ("terms_and_conditions", models.TextField(blank=True, default="")),
                ("converted_from", models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="conversions",
                    to="comptoir.document",
                )),
                ("customer", models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="documents",
                    to="comptoir.customer",
                )),
                ("owner", owner_field("document_owned")),
            ],
            options={
                "ordering": ["-issue_date", "-id"],
                "indexes": [models.Index(fields=["owner", "type", "status"], name="document_owner_type_status_idx")],
            },
        ),
        migrations.CreateModel(
            name="LineItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("position", models.PositiveIntegerField(default=0)),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                ("quantity", models.DecimalField(decimal_places=6, default=Decimal("1"), max_digits=18, validators=min_zero())),
                ("unit", models.CharField(blank=True, default="", max_length=20)),
                ("unit_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12, validators=min_zero())),
                ("tax_rate", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=5)),
                ("discount_type", models.CharField(blank=True, choices=DISCOUNT_CHOICES, default="", max_length=12)),
                ("discount_value", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12, validators=min_zero())),
                ("subtotal", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("tax_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("total", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("document", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="items",
                    to="comptoir.document",
                )),
                ("product", models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="line_items",
                    to="comptoir.product",
                )),
            ],
            options={"ordering": ["position", "id"]},
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("amount", models.DecimalField(decimal_places=2, max_digits=12, validators=min_zero("0.01"))),
                ("method", models.CharField(choices=PAYMENT_METHOD_CHOICES, default="cash", max_length=20)),
                ("date", models.DateField(default=django.utils.timezone.localdate)),
                ("status", models.CharField(choices=PAYMENT_STATUS_CHOICES, default="completed", max_length=10)),
                ("reference", models.CharField(blank=True, default="", max_length=100)),
                ("note", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("document", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="payments",
                    to="comptoir.document",
                )),
            ],
            options={"ordering": ["date", "id"]},
        ),
        migrations.CreateModel(
            name="PaymentLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("document_reference", models.CharField(blank=True, default="", max_length=60)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("method", models.CharField(choices=PAYMENT_METHOD_CHOICES, max_length=20)),
                ("date", models.DateField()),
                ("status", models.CharField(choices=PAYMENT_STATUS_CHOICES, max_length=10)),
                ("reference", models.CharField(blank=True, default="", max_length=100)),
                ("note", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("document", models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="payment_logs",
                    to="comptoir.document",
                )),
                ("owner", owner_field("payment_logs")),
                ("payment", models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="log_entries",
                    to="comptoir.payment",
                )),
            ],
            options={"ordering": ["-created_at", "-id"]},
        ),
        migrations.CreateModel(
            name="StockMovement",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("type", models.CharField(choices=[("in", "In"), ("out", "Out"), ("adjustment", "Adjustment")], max_length=12)),
                ("quantity", models.DecimalField(decimal_places=6, max_digits=18, validators=min_zero())),
                ("reason", models.CharField(
                    choices=[
                        ("purchase", "Purchase"),
                        ("sale", "Sale"),
                        ("return", "Return"),
                        ("damage", "Damage"),
                        ("inventory", "Inventory"),
                        ("transfer", "Transfer"),
                        ("production", "Production"),
                        ("other", "Other"),
                    ],
                    default="other", max_length=12,
                )),
                ("document_id", models.PositiveBigIntegerField(blank=True, db_index=True, null=True)),
                ("document_type", models.CharField(
                    blank=True,
                    choices=[
                        ("", "None"),
                        ("invoice", "Invoice"),
                        ("goods_receipt", "Goods receipt"),
                        ("inventory_count", "Inventory count"),
                    ],
                    default="", max_length=20,
                )),
                ("note", models.TextField(blank=True, default="")),
                ("date", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("stock_after", models.DecimalField(blank=True, decimal_places=6, max_digits=18, null=True)),
                ("owner", owner_field("stock_movements")),
                ("product", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="movements",
                    to="comptoir.product",
                )),
            ],
            options={
                "ordering": ["-date", "-id"],
                "indexes": [models.Index(fields=["document_type", "document_id"], name="stockmove_document_idx")],
            },
        ),
        migrations.CreateModel(
            name="SupplierOrder",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("reference", models.CharField(blank=True, db_index=True, default="", max_length=60)),
                ("status", models.CharField(
                    choices=[
                        ("draft", "Draft"),
                        ("sent", "Sent"),
                        ("partial", "Partially received"),
                        ("received", "Received"),
                        ("cancelled", "Cancelled"),
                    ],
                    default="draft", max_length=10,
                )),
                ("order_date", models.DateField(default=django.utils.timezone.localdate)),
                ("expected_delivery_date", models.DateField(blank=True, null=True)),
                ("subtotal", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("tax_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("shipping_cost", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12, validators=min_zero())),
                ("total_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("notes", models.TextField(blank=True, default="")),
                ("owner", owner_field("supplierorder_owned")),
                ("supplier", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="orders",
                    to="comptoir.supplier",
                )),
            ],
            options={"ordering": ["-order_date", "-id"]},
        ),
        migrations.CreateModel(
            name="SupplierOrderItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                ("quantity", models.DecimalField(decimal_places=6, default=Decimal("1"), max_digits=18, validators=min_zero())),
                ("unit_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12, validators=min_zero())),
                ("tax_rate", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=5)),
                ("total", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("order", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="items",
                    to="comptoir.supplierorder",
                )),
                ("product", models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="order_items",
                    to="comptoir.product",
                )),
            ],
            options={"ordering": ["id"]},
        ),
        migrations.CreateModel(
            name="GoodsReceipt",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("reference", models.CharField(blank=True, default="", max_length=60)),
                ("received_date", models.DateField(default=django.utils.timezone.localdate)),
                ("is_complete", models.BooleanField(default=False)),
                ("notes", models.TextField(blank=True, default="")),
                ("owner", owner_field("goodsreceipt_owned")),
                ("supplier_order", models.ForeignKey(
                    blank=True, null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="receipts",
                    to="comptoir.supplierorder",
                )),
            ],
            options={"ordering": ["-received_date", "-id"]},
        ),
        migrations.CreateModel(
            name="GoodsReceiptItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("ordered_quantity", models.DecimalField(decimal_places=6, default=Decimal("0"), max_digits=18)),
                ("received_quantity", models.DecimalField(decimal_places=6, default=Decimal("0"), max_digits=18, validators=min_zero())),
                ("lot_number", models.CharField(blank=True, default="", max_length=60)),
                ("expiry_date", models.DateField(blank=True, null=True)),
                ("product", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="receipt_items",
                    to="comptoir.product",
                )),
                ("receipt", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="items",
                    to="comptoir.goodsreceipt",
                )),
            ],
            options={"ordering": ["id"]},
        ),
        migrations.CreateModel(
            name="InventoryCount",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("reference", models.CharField(blank=True, default="", max_length=60)),
                ("status", models.CharField(
                    choices=[("draft", "Draft"), ("in_progress", "In progress"), ("completed", "Completed")],
                    default="draft", max_length=12,
                )),
                ("start_date", models.DateField(default=django.utils.timezone.localdate)),
                ("end_date", models.DateField(blank=True, null=True)),
                ("notes", models.TextField(blank=True, default="")),
                ("applied_at", models.DateTimeField(blank=True, null=True)),
                ("owner", owner_field("inventorycount_owned")),
            ],
            options={"ordering": ["-start_date", "-id"]},
        ),
        migrations.CreateModel(
            name="InventoryCountItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("expected_quantity", models.DecimalField(decimal_places=6, default=Decimal("0"), max_digits=18)),
                ("counted_quantity", models.DecimalField(decimal_places=6, default=Decimal("0"), max_digits=18, validators=min_zero())),
                ("notes", models.CharField(blank=True, default="", max_length=255)),
                ("count", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="items",
                    to="comptoir.inventorycount",
                )),
                ("product", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="count_items",
                    to="comptoir.product",
                )),
            ],
            options={"ordering": ["id"]},
        ),
    ]
