"""
Void / reversal engine.

A void never edits or deletes posted lines. It posts a mirror journal
(every debit becomes a credit and vice versa) that points back at the
original through reversal_of, and marks the original REVERSED.
"""
import logging

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from ..exceptions import AlreadyVoidedError
from ..models import DOCUMENT_MODELS, Bill, Invoice, Journal, Payment, Receipt
from .audit_helper import log_action
from .billing import refresh_bill_status, refresh_invoice_status
from .entries import mirror_entries
from .periods import assert_period_open
from .posting import post_journal

logger = logging.getLogger(__name__)

# Short names accepted alongside the source_doc_type values
DOC_TYPE_ALIASES = {
    "bill": Bill.doc_type,
    "invoice": Invoice.doc_type,
    "payment": Payment.doc_type,
    "receipt": Receipt.doc_type,
}


def _reverse(journal, reason, date, user):
    journal = Journal.objects.select_for_update().get(pk=journal.pk)
    if journal.status == "draft":
        raise ValidationError("Draft journals are not in the ledger; delete them instead.")
    if journal.reversal_of_id:
        raise ValidationError(
            f"Journal {journal.number} is itself a reversal and cannot be voided.")
    if journal.status == "reversed" or journal.voided_at:
        raise AlreadyVoidedError(f"Journal {journal.number} is already voided")
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError({"reason": "A void reason is required"})

    assert_period_open(journal.date)
    # never dated before the original
    void_date = max(date or timezone.localdate(), journal.date)

    source = None
    if journal.source_doc_type:
        source = (journal.source_doc_type, journal.source_doc_id)
    reversal = post_journal(
        void_date,
        f"REVERSAL of {journal.number}: {reason}",
        mirror_entries(journal.lines.order_by("sort_order", "pk")),
        source=source,
        user=user,
        reversal_of=journal,
    )

    journal.status = "reversed"
    journal.voided_at = timezone.now()
    journal.void_reason = reason
    journal.save(update_fields=["status", "voided_at", "void_reason"])

    log_action(
        action="void",
        instance=journal,
        user=user,
        reason=reason,
        changes={"reversal": reversal.number, "date": str(void_date)},
    )
    logger.info("Voided journal %s with reversal %s", journal.number, reversal.number)
    return reversal


@transaction.atomic
def void_journal(journal, reason, date=None, user=None):
    """
    Reverse a journal that no document owns (manual entries).
    Document journals go through void_document() so the document is marked too.
    """
    if not isinstance(journal, Journal):
        journal = Journal.objects.get(pk=journal)
    if journal.source_doc_type in DOCUMENT_MODELS:
        raise ValidationError(
            f"Journal {journal.number} belongs to a {journal.source_doc_type}; "
            "void the document instead.")
    return _reverse(journal, reason, date, user)


@transaction.atomic
def void_document(doc_type, doc_id, reason, date=None, user=None):
    """Void a bill, invoice, payment or receipt. Returns the reversal journal."""
    doc_type = DOC_TYPE_ALIASES.get(doc_type, doc_type)
    model = DOCUMENT_MODELS.get(doc_type)
    if model is None:
        raise ValidationError({"doc_type": f"Unknown document type {doc_type!r}"})
    try:
        doc = model.objects.select_for_update().get(pk=doc_id)
    except model.DoesNotExist:
        raise ValidationError({"doc_id": f"{model.__name__} {doc_id} does not exist"}) from None

    if doc.is_voided:
        raise AlreadyVoidedError(f"{model.__name__} {doc.number} is already voided")
    if doc.journal_id is None:
        raise ValidationError(f"{model.__name__} {doc.number} has no posted journal")

    if model is Bill and doc.payments.filter(voided_at__isnull=True).exists():
        raise ValidationError(
            f"Bill {doc.number} has payments; void those payments first.")
    if model is Invoice and doc.receipts.filter(voided_at__isnull=True).exists():
        raise ValidationError(
            f"Invoice {doc.number} has receipts; void those receipts first.")

    reversal = _reverse(doc.journal, reason, date, user)

    doc.voided_at = timezone.now()
    doc.void_reason = reason.strip()
    doc.reversal_journal = reversal
    doc.save(update_fields=["voided_at", "void_reason", "reversal_journal"])

    if model in (Bill, Invoice):
        doc.transition_to("cancelled")
    elif model is Payment:
        refresh_bill_status(Bill.objects.select_for_update().get(pk=doc.bill_id))
    else:
        refresh_invoice_status(
            Invoice.objects.select_for_update().get(pk=doc.invoice_id))

    log_action(
        action="void",
        instance=doc,
        user=user,
        reason=reason,
        changes={"journal": doc.journal.number, "reversal": reversal.number},
    )
    return reversal
