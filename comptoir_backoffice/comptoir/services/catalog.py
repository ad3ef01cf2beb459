# comptoir/services/catalog.py
from ..forms import CustomerForm, ProductForm, SupplierForm, validated
from .results import require_user, service_operation
from .stores import CustomerStore, ProductStore, SupplierStore


def _save(store, form_class, user, payload):
    payload = payload or {}
    instance = store.get_by_id(payload["id"]) if payload.get("id") else None
    obj = validated(form_class, payload, instance=instance, owner=user)
    return store.save(obj)


@service_operation
def list_products(user, low_stock_only=False):
    products = ProductStore(user).list()
    if low_stock_only:
        products = [p for p in products if p.is_low_stock]
    return products


@service_operation
def get_product(user, product_id):
    return ProductStore(user).get_by_id(product_id)


@service_operation
def save_product(user, payload):
    """
    Create or update a product. `current_stock` is taken as given here;
    later changes should go through stock movements.
    """
    require_user(user)
    return _save(ProductStore(user), ProductForm, user, payload)


@service_operation
def delete_product(user, product_id):
    return ProductStore(user).delete(product_id)


@service_operation
def list_customers(user):
    return CustomerStore(user).list()


@service_operation
def save_customer(user, payload):
    require_user(user)
    return _save(CustomerStore(user), CustomerForm, user, payload)


@service_operation
def delete_customer(user, customer_id):
    return CustomerStore(user).delete(customer_id)


@service_operation
def list_suppliers(user):
    return SupplierStore(user).list()


@service_operation
def save_supplier(user, payload):
    require_user(user)
    return _save(SupplierStore(user), SupplierForm, user, payload)


@service_operation
def delete_supplier(user, supplier_id):
    return SupplierStore(user).delete(supplier_id)
