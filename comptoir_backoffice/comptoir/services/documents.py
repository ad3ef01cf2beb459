# comptoir/services/documents.py
"""
Invoice, quote, customer order and delivery note operations.

All four kinds share the Document model and have their own numbering
counter. Only invoices take payments and move stock.

Saving a document is two steps:
  1. the document, its lines and its totals are written together;
  2. a finalized invoice then has its stock reconciled, product by product.
A failure in step 2 is logged by the stock service and never fails step 1.
"""
import logging

from django.db import transaction
from django.utils import timezone

from ..forms import BillingSettingsForm, DocumentForm, LineItemForm, validated, validated_items
from ..models import BillingSettings, Document, LineItem
from .numbering import calculate_due_date
from .results import ValidationFailure, require_user, service_operation
from .stock import propagate_document_stock, release_document_stock
from .stores import DocumentStore
from .totals import derive_payment_status

logger = logging.getLogger(__name__)

TOTAL_FIELDS = [
    "subtotal", "discount_total", "taxable_amount", "tax_total",
    "total", "amount_paid", "amount_due",
]


def _fill_defaults(user, document: Document, creating: bool):
    billing = BillingSettings.for_user(user)

    if not document.reference:
        document.reference = billing.take_next_reference(document.type)
    if not document.payment_terms:
        document.payment_terms = billing.default_payment_terms
    if document.type in (Document.Type.INVOICE, Document.Type.ORDER):
        if document.due_date is None:
            document.due_date = calculate_due_date(document.issue_date, document.payment_terms)
    elif document.type == Document.Type.QUOTE and document.valid_until is None:
        document.valid_until = calculate_due_date(document.issue_date, document.payment_terms)

    if creating:
        document.notes = document.notes or billing.default_notes
        document.terms_and_conditions = document.terms_and_conditions or billing.default_terms_and_conditions


def store_document(store: DocumentStore, document: Document, new_items=None, payments=None):
    """
    Recompute totals and write the document with its lines.
    `new_items` replaces the stored lines; None keeps them.
    """
    with transaction.atomic():
        if new_items is None:
            totals = document.recompute_totals(payments=payments, save_items=True)
        else:
            totals = document.recompute_totals(items=new_items, payments=payments, save_items=False)

        if document.type == Document.Type.INVOICE and totals.amount_paid > 0:
            document.status = derive_payment_status(document.status, totals)

        store.save(document)

        if new_items is not None:
            document.items.all().delete()
            for position, item in enumerate(new_items):
                item.document = document
                item.position = position
                item.save()
    return totals


@service_operation
def list_documents(user, doc_type=None, status=None):
    documents = DocumentStore(user).list(doc_type=doc_type)
    if status:
        documents = [d for d in documents if d.status == status]
    return documents


@service_operation
def get_document(user, document_id):
    return DocumentStore(user).get_by_id(document_id)


@service_operation
def save_document(user, payload):
    """Create or update an invoice or quote, then take stock out for finalized invoices."""
    require_user(user)
    payload = payload or {}
    store = DocumentStore(user)

    instance = store.get_by_id(payload["id"]) if payload.get("id") else None
    if instance is not None:
        if instance.status == Document.Status.CONVERTED:
            raise ValidationFailure("A converted quote cannot be changed")
        if payload.get("type") and payload["type"] != instance.type:
            raise ValidationFailure("The type of a saved document cannot change")

    document = validated(DocumentForm, payload, instance=instance, owner=user)
    new_items = None
    if "items" in payload:
        new_items = validated_items(LineItemForm, payload["items"], owner=user)

    _fill_defaults(user, document, creating=instance is None)
    store_document(store, document, new_items)

    propagate_document_stock(user, document)
    return store.get_by_id(document.pk)


@service_operation
def delete_document(user, document_id):
    """Delete a document; stock taken out by an invoice goes back first."""
    store = DocumentStore(user)
    document = store.get_by_id(document_id)
    if document.type == Document.Type.INVOICE:
        release_document_stock(user, document)
    document.delete()
    logger.info("Document %s deleted by user %s", document_id, user.pk)
    return document_id


@service_operation
def convert_quote_to_invoice(user, quote_id):
    """Copy a quote into a new draft invoice and mark the quote as converted."""
    store = DocumentStore(user)
    quote = store.get_by_id(quote_id)
    if quote.type != Document.Type.QUOTE:
        raise ValidationFailure("Only quotes can be converted to invoices")
    if quote.status == Document.Status.CONVERTED:
        raise ValidationFailure("This quote has already been converted")

    billing = BillingSettings.for_user(user)
    today = timezone.localdate()
    invoice = Document(
        type=Document.Type.INVOICE,
        status=Document.Status.DRAFT,
        customer=quote.customer,
        customer_name=quote.customer_name,
        issue_date=today,
        payment_terms=quote.payment_terms or billing.default_payment_terms,
        global_discount_type=quote.global_discount_type,
        global_discount_value=quote.global_discount_value,
        global_discount_reason=quote.global_discount_reason,
        notes=quote.notes,
        terms_and_conditions=quote.terms_and_conditions,
        converted_from=quote,
    )
    items = [
        LineItem(
            product_id=line.product_id,
            description=line.description,
            quantity=line.quantity,
            unit=line.unit,
            unit_price=line.unit_price,
            tax_rate=line.tax_rate,
            discount_type=line.discount_type,
            discount_value=line.discount_value,
        )
        for line in quote.items.all()
    ]

    with transaction.atomic():
        _fill_defaults(user, invoice, creating=False)
        store_document(store, invoice, items, payments=[])
        quote.status = Document.Status.CONVERTED
        quote.save(update_fields=["status", "updated_at"])

    logger.info("Quote %s converted to invoice %s", quote.reference, invoice.reference)
    return store.get_by_id(invoice.pk)


def recalculate_document(document: Document) -> Document:
    """Recompute and store the totals of one document (lines included)."""
    with transaction.atomic():
        document.recompute_totals(save_items=True)
        document.save(update_fields=TOTAL_FIELDS + ["updated_at"])
    return document


@service_operation
def get_billing_settings(user):
    return BillingSettings.for_user(require_user(user))


@service_operation
def save_billing_settings(user, payload):
    billing = BillingSettings.for_user(require_user(user))
    billing = validated(BillingSettingsForm, payload, instance=billing)
    billing.save()
    return billing
