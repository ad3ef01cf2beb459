# comptoir/services/payments.py
import logging

from django.db import transaction

from ..forms import PaymentForm, validated
from ..models import Document, Payment, PaymentLog
from .documents import store_document
from .results import ValidationFailure, require_user, service_operation
from .stock import propagate_document_stock
from .stores import DocumentStore, PaymentLogStore

logger = logging.getLogger(__name__)


def _log_payment(user, document: Document, payment: Payment):
    entry = PaymentLog(
        payment=payment,
        document=document,
        document_reference=document.reference,
        amount=payment.amount,
        method=payment.method,
        date=payment.date,
        status=payment.status,
        reference=payment.reference,
        note=payment.note,
    )
    return PaymentLogStore(user).save(entry)


@service_operation
def record_payment(user, document_id, payload):
    """
    Add a payment to an invoice and refresh its totals and status.

    The document (with the payment) is written first, the payment log entry
    second; a failed log write is logged and does not undo the payment.
    """
    require_user(user)
    store = DocumentStore(user)
    document = store.get_by_id(document_id)
    if document.type != Document.Type.INVOICE:
        raise ValidationFailure("Payments can only be recorded on invoices")

    payment = validated(PaymentForm, payload)
    payment.document = document
    with transaction.atomic():
        payment.save()
        payments = list(Payment.objects.filter(document=document))
        totals = store_document(store, document, payments=payments)
    logger.info("Payment of %s recorded on %s; due %s, status %s",
                payment.amount, document.reference, totals.amount_due, document.status)

    propagate_document_stock(user, document)

    try:
        _log_payment(user, document, payment)
    except Exception:
        logger.error("Payment log entry for payment %s could not be written", payment.pk, exc_info=True)

    return store.get_by_id(document.pk)


@service_operation
def list_payment_log(user):
    return PaymentLogStore(user).list()
