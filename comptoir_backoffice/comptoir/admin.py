# comptoir/admin.py
from django.contrib import admin, messages

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
    PaymentLog,
    Product,
    StockMovement,
    Supplier,
    SupplierOrder,
    SupplierOrderItem,
)
from .services.documents import recalculate_document


class ReadOnlyAdmin(admin.ModelAdmin):
    """Append-only records: viewable, never edited from the admin."""

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(BillingSettings)
class BillingSettingsAdmin(admin.ModelAdmin):
    list_display = ("user", "invoice_number_format", "next_invoice_number",
                    "quote_number_format", "next_quote_number", "next_order_number",
                    "next_delivery_number", "default_tax_rate")
    search_fields = ("user__username",)


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("name", "kind", "email", "phone", "owner")
    list_filter = ("kind",)
    search_fields = ("name", "email", "phone", "customer_code", "tax_id")


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display = ("name", "contact_person", "email", "phone", "owner")
    search_fields = ("name", "email", "phone", "tax_id")


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("reference", "name", "selling_price", "current_stock",
                    "min_stock_level", "track_inventory", "owner")
    list_filter = ("track_inventory", "category")
    search_fields = ("reference", "name", "barcode")
    readonly_fields = ("current_stock", "created_at", "updated_at")


class LineItemInline(admin.TabularInline):
    model = LineItem
    extra = 0
    fields = ("position", "product", "description", "quantity", "unit_price",
              "tax_rate", "discount_type", "discount_value", "subtotal", "tax_amount", "total")
    readonly_fields = ("subtotal", "tax_amount", "total")


class PaymentInline(admin.TabularInline):
    model = Payment
    extra = 0
    fields = ("date", "amount", "method", "status", "reference")


@admin.register(Document)
class DocumentAdmin(admin.ModelAdmin):
    list_display = ("reference", "type", "status", "customer_name", "issue_date",
                    "total", "amount_paid", "amount_due", "owner")
    list_filter = ("type", "status", ("issue_date", admin.DateFieldListFilter))
    search_fields = ("reference", "customer_name", "customer__name")
    date_hierarchy = "issue_date"
    inlines = [LineItemInline, PaymentInline]
    readonly_fields = ("subtotal", "discount_total", "taxable_amount", "tax_total",
                       "total", "amount_paid", "amount_due", "converted_from",
                       "created_at", "updated_at")
    actions = ("action_recalculate_totals",)

    @admin.action(description="Recalculate totals")
    def action_recalculate_totals(self, request, queryset):
        count = 0
        for doc in queryset.prefetch_related("items", "payments"):
            recalculate_document(doc)
            count += 1
        messages.success(request, f"Recalculated {count} document(s).")


@admin.register(PaymentLog)
class PaymentLogAdmin(ReadOnlyAdmin):
    list_display = ("created_at", "document_reference", "amount", "method", "status", "owner")
    list_filter = ("method", "status")
    search_fields = ("document_reference", "reference")


@admin.register(StockMovement)
class StockMovementAdmin(ReadOnlyAdmin):
    list_display = ("date", "product", "type", "reason", "quantity", "stock_after",
                    "document_type", "document_id", "owner")
    list_filter = ("type", "reason", "document_type")
    search_fields = ("product__name", "product__reference", "note")
    date_hierarchy = "date"


class SupplierOrderItemInline(admin.TabularInline):
    model = SupplierOrderItem
    extra = 0
    readonly_fields = ("total",)


@admin.register(SupplierOrder)
class SupplierOrderAdmin(admin.ModelAdmin):
    list_display = ("reference", "supplier", "status", "order_date", "total_amount", "owner")
    list_filter = ("status",)
    search_fields = ("reference", "supplier__name")
    inlines = [SupplierOrderItemInline]
    readonly_fields = ("subtotal", "tax_amount", "total_amount")


class GoodsReceiptItemInline(admin.TabularInline):
    model = GoodsReceiptItem
    extra = 0


@admin.register(GoodsReceipt)
class GoodsReceiptAdmin(admin.ModelAdmin):
    list_display = ("reference", "supplier_order", "received_date", "is_complete", "owner")
    list_filter = ("is_complete",)
    inlines = [GoodsReceiptItemInline]


class InventoryCountItemInline(admin.TabularInline):
    model = InventoryCountItem
    extra = 0


@admin.register(InventoryCount)
class InventoryCountAdmin(admin.ModelAdmin):
    list_display = ("reference", "status", "start_date", "end_date", "applied_at", "owner")
    list_filter = ("status",)
    inlines = [InventoryCountItemInline]
    readonly_fields = ("applied_at",)
