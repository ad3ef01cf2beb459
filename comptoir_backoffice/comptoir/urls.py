from django.urls import path

from . import views

app_name = "comptoir"

urlpatterns = [
    # Documents
    path("documents/", views.documents_collection, name="documents"),
    path("documents/<int:pk>/", views.document_detail, name="document_detail"),
    path("documents/<int:pk>/delete/", views.document_delete, name="document_delete"),
    path("documents/<int:pk>/payments/", views.document_record_payment, name="document_record_payment"),
    path("documents/<int:pk>/convert/", views.quote_convert, name="quote_convert"),
    path("orders/", views.documents_collection, {"doc_type": "order"}, name="orders"),
    path("deliveries/", views.documents_collection, {"doc_type": "delivery"}, name="deliveries"),
    path("payments/log/", views.payment_log, name="payment_log"),
    path("settings/billing/", views.billing_settings, name="billing_settings"),

    # Products & stock
    path("products/", views.products_collection, name="products"),
    path("products/<int:pk>/", views.product_detail, name="product_detail"),
    path("products/<int:pk>/delete/", views.product_delete, name="product_delete"),
    path("products/<int:pk>/movements/", views.product_movements, name="product_movements"),
    path("stock-movements/", views.stock_movements_collection, name="stock_movements"),
    path("goods-receipts/", views.goods_receipts_collection, name="goods_receipts"),
    path("inventory-counts/", views.inventory_counts_collection, name="inventory_counts"),
    path("inventory-counts/<int:pk>/", views.inventory_count_update, name="inventory_count_update"),

    # Parties & purchasing
    path("customers/", views.customers_collection, name="customers"),
    path("customers/<int:pk>/delete/", views.customer_delete, name="customer_delete"),
    path("suppliers/", views.suppliers_collection, name="suppliers"),
    path("suppliers/<int:pk>/delete/", views.supplier_delete, name="supplier_delete"),
    path("supplier-orders/", views.supplier_orders_collection, name="supplier_orders"),
    path("supplier-orders/<int:pk>/delete/", views.supplier_order_delete, name="supplier_order_delete"),

    # Reporting
    path("dashboard/", views.dashboard_view, name="dashboard"),
]
