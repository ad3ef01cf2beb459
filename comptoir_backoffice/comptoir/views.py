# comptoir/views.py
"""
JSON endpoints.

Every view decodes the request, calls one service operation with
`request.user` and returns `{"ok": true, "data": ...}` or
`{"ok": false, "error": ...}` with the status code the operation chose.
"""
import json

from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from . import serializers
from .services import catalog, dashboard, documents, payments, purchasing, stock


def _payload(request):
    if not request.body:
        return {}
    try:
        return json.loads(request.body)
    except (ValueError, UnicodeDecodeError):
        return None


def _bad_json():
    return JsonResponse({"ok": False, "error": "Invalid JSON body"}, status=400)


def _respond(result, serialize=None):
    if result.ok:
        data = result.data
        if serialize is not None:
            data = [serialize(x) for x in data] if isinstance(data, list) else serialize(data)
        return JsonResponse({"ok": True, "data": data})
    body = {"ok": False, "error": result.error}
    if result.errors:
        body["errors"] = result.errors
    return JsonResponse(body, status=result.status_code)


def _save(request, operation, serialize, pk=None):
    payload = _payload(request)
    if not isinstance(payload, dict):
        return _bad_json()
    if pk is not None:
        payload["id"] = pk
    return _respond(operation(request.user, payload), serialize)


# ---------- documents ----------
@require_http_methods(["GET", "POST"])
def documents_collection(request, doc_type=None):
    """`doc_type` is fixed by the orders/ and deliveries/ routes, else read from ?type=."""
    if request.method == "POST":
        payload = _payload(request)
        if not isinstance(payload, dict):
            return _bad_json()
        if doc_type:
            payload["type"] = doc_type
        return _respond(documents.save_document(request.user, payload), serializers.document_json)
    result = documents.list_documents(
        request.user,
        doc_type=doc_type or request.GET.get("type") or None,
        status=request.GET.get("status") or None,
    )
    return _respond(result, serializers.document_json)


@require_http_methods(["GET", "POST"])
def document_detail(request, pk):
    if request.method == "POST":
        return _save(request, documents.save_document, serializers.document_json, pk=pk)
    return _respond(documents.get_document(request.user, pk), serializers.document_json)


@require_POST
def document_delete(request, pk):
    return _respond(documents.delete_document(request.user, pk))


@require_POST
def document_record_payment(request, pk):
    payload = _payload(request)
    if not isinstance(payload, dict):
        return _bad_json()
    result = payments.record_payment(request.user, pk, payload)
    return _respond(result, serializers.document_json)


@require_POST
def quote_convert(request, pk):
    return _respond(documents.convert_quote_to_invoice(request.user, pk), serializers.document_json)


@require_GET
def payment_log(request):
    return _respond(payments.list_payment_log(request.user), serializers.payment_log_json)


@require_http_methods(["GET", "POST"])
def billing_settings(request):
    if request.method == "POST":
        return _save(request, documents.save_billing_settings, serializers.billing_settings_json)
    return _respond(documents.get_billing_settings(request.user), serializers.billing_settings_json)


# ---------- products & stock ----------
@require_http_methods(["GET", "POST"])
def products_collection(request):
    if request.method == "POST":
        return _save(request, catalog.save_product, serializers.product_json)
    low_only = request.GET.get("low_stock") in ("1", "true", "yes")
    return _respond(catalog.list_products(request.user, low_stock_only=low_only), serializers.product_json)


@require_http_methods(["GET", "POST"])
def product_detail(request, pk):
    if request.method == "POST":
        return _save(request, catalog.save_product, serializers.product_json, pk=pk)
    return _respond(catalog.get_product(request.user, pk), serializers.product_json)


@require_POST
def product_delete(request, pk):
    return _respond(catalog.delete_product(request.user, pk))


@require_GET
def product_movements(request, pk):
    return _respond(stock.list_stock_movements(request.user, product_id=pk), serializers.movement_json)


@require_http_methods(["GET", "POST"])
def stock_movements_collection(request):
    if request.method == "POST":
        return _save(request, stock.apply_stock_movement, serializers.movement_json)
    result = stock.list_stock_movements(request.user, product_id=request.GET.get("product") or None)
    return _respond(result, serializers.movement_json)


@require_http_methods(["GET", "POST"])
def goods_receipts_collection(request):
    if request.method == "POST":
        return _save(request, stock.save_goods_receipt, serializers.goods_receipt_json)
    return _respond(stock.list_goods_receipts(request.user), serializers.goods_receipt_json)


@require_http_methods(["GET", "POST"])
def inventory_counts_collection(request):
    if request.method == "POST":
        return _save(request, stock.save_inventory_count, serializers.inventory_count_json)
    return _respond(stock.list_inventory_counts(request.user), serializers.inventory_count_json)


@require_POST
def inventory_count_update(request, pk):
    return _save(request, stock.save_inventory_count, serializers.inventory_count_json, pk=pk)


# ---------- parties & purchasing ----------
@require_http_methods(["GET", "POST"])
def customers_collection(request):
    if request.method == "POST":
        return _save(request, catalog.save_customer, serializers.customer_json)
    return _respond(catalog.list_customers(request.user), serializers.customer_json)


@require_POST
def customer_delete(request, pk):
    return _respond(catalog.delete_customer(request.user, pk))


@require_http_methods(["GET", "POST"])
def suppliers_collection(request):
    if request.method == "POST":
        return _save(request, catalog.save_supplier, serializers.supplier_json)
    return _respond(catalog.list_suppliers(request.user), serializers.supplier_json)


@require_POST
def supplier_delete(request, pk):
    return _respond(catalog.delete_supplier(request.user, pk))


@require_http_methods(["GET", "POST"])
def supplier_orders_collection(request):
    if request.method == "POST":
        return _save(request, purchasing.save_supplier_order, serializers.supplier_order_json)
    result = purchasing.list_supplier_orders(request.user, status=request.GET.get("status") or None)
    return _respond(result, serializers.supplier_order_json)


@require_POST
def supplier_order_delete(request, pk):
    return _respond(purchasing.delete_supplier_order(request.user, pk))


# ---------- reporting ----------
@require_GET
def dashboard_view(request):
    result = dashboard.dashboard_summary(request.user, period=request.GET.get("period") or "month")
    return _respond(result, serializers.dashboard_json)
