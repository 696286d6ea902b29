from typing import Optional
import logging

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Sum

from .. import conf
from ..exceptions import ExceedsBalance
from ..models import Account, Bill, Invoice, Payment, Receipt
from . import tax
from .audit_helper import log_action
from .billing import refresh_bill_status, refresh_invoice_status
from .entries import payment_entries, receipt_entries
from .periods import assert_period_open
from .posting import next_number, post_journal
from .reports import bill_outstanding, invoice_outstanding

logger = logging.getLogger(__name__)


# ----------------------------
# Payment-related workflows
# ----------------------------
def _check_bank_account(code):
    if not Account.objects.active().filter(code=code, ac_type="ASSET").exists():
        raise ValidationError(
            {"bank_account_code": f"{code} is not an active asset account"})


def _withheld_so_far(settlements):
    return settlements.filter(voided_at__isnull=True).aggregate(
        total=Sum("pph23_withheld"))["total"] or 0


def _remaining_withholding(doc_type, counterparty, subtotal, settlements):
    """
    PPh 23 is due once per document: the first settlement carries the full
    figure, later ones whatever is still unwithheld.
    """
    taxes = tax.evaluate(doc_type, counterparty, subtotal)
    if not taxes.withholding_applicable:
        return 0
    return max(taxes.withholding_amount - _withheld_so_far(settlements), 0)


@transaction.atomic
def create_payment(
    date,
    bill,
    amount: int,
    bank_account_code: Optional[str] = None,
    *,
    description: str = "",
    user=None,
):
    """
    Pay a vendor bill.

    amount is the net cash leaving the bank; PPh 23 (when the vendor is
    subject to it) is withheld on top, so the bill is settled by
    amount + withheld. Returns (payment, journal).
    """
    assert_period_open(date)
    bill_id = bill.pk if isinstance(bill, Bill) else bill
    # Lock the bill row until commit: a second payment on the same bill
    # waits here and then sees the balance this one consumed
    try:
        bill = Bill.objects.select_for_update().select_related("vendor").get(pk=bill_id)
    except Bill.DoesNotExist:
        raise ValidationError({"bill": f"Bill {bill_id} does not exist"}) from None

    if bill.is_voided or bill.journal_id is None:
        raise ValidationError({"bill": f"Bill {bill.number} is not payable"})
    if not isinstance(amount, int) or amount <= 0:
        raise ValidationError({"amount": "Amount must be a positive whole rupiah amount"})
    if date < bill.date:
        raise ValidationError({"date": "Payment date is before the bill date"})
    bank_account_code = bank_account_code or conf.control_account("bank")
    _check_bank_account(bank_account_code)

    withheld = _remaining_withholding(
        tax.PAYMENT, bill.vendor, bill.subtotal, bill.payments.all())

    outstanding = bill_outstanding(bill)
    if amount + withheld > outstanding:
        raise ExceedsBalance(amount + withheld, outstanding)

    payment = Payment(
        number=next_number("PAY", date.year),
        date=date,
        bill=bill,
        vendor=bill.vendor,
        amount=amount,
        pph23_withheld=withheld,
        bank_account_code=bank_account_code,
        description=description,
        created_by=user,
    )
    payment.save()

    journal = post_journal(
        date,
        f"Payment {payment.number} - {bill.number}",
        payment_entries(payment, bill),
        source=(Payment.doc_type, payment.pk),
        user=user,
    )
    payment.journal = journal
    payment.save(update_fields=["journal"])

    refresh_bill_status(bill)

    log_action(
        action="apply_payment",
        instance=payment,
        user=user,
        changes={
            "bill": bill.number,
            "amount": amount,
            "pph23_withheld": withheld,
            "bill_status": bill.status,
        },
    )
    logger.info("Payment %s on bill %s: net=%s pph23=%s",
                payment.number, bill.number, amount, withheld)
    return payment, journal


@transaction.atomic
def create_receipt(
    date,
    invoice,
    amount: int,
    bank_account_code: Optional[str] = None,
    *,
    pph23_withheld: Optional[int] = None,
    description: str = "",
    user=None,
):
    """
    Record cash received against an invoice.

    amount is the receivable cleared; the client may keep PPh 23 back, so
    the bank gets amount - withheld. When pph23_withheld is not given it is
    derived from the client's withholding flag, once per invoice.
    Returns (receipt, journal).
    """
    assert_period_open(date)
    invoice_id = invoice.pk if isinstance(invoice, Invoice) else invoice
    try:
        invoice = (Invoice.objects.select_for_update()
                   .select_related("client").get(pk=invoice_id))
    except Invoice.DoesNotExist:
        raise ValidationError(
            {"invoice": f"Invoice {invoice_id} does not exist"}) from None

    if invoice.is_voided or invoice.journal_id is None:
        raise ValidationError({"invoice": f"Invoice {invoice.number} is not open"})
    if not isinstance(amount, int) or amount <= 0:
        raise ValidationError({"amount": "Amount must be a positive whole rupiah amount"})
    if date < invoice.date:
        raise ValidationError({"date": "Receipt date is before the invoice date"})
    bank_account_code = bank_account_code or conf.control_account("bank")
    _check_bank_account(bank_account_code)

    if pph23_withheld is None:
        withheld = min(
            _remaining_withholding(tax.RECEIPT, invoice.client,
                                   invoice.subtotal, invoice.receipts.all()),
            amount,
        )
    else:
        withheld = pph23_withheld
    # withheld == amount is a receipt settled only by the withholding slip
    if not isinstance(withheld, int) or withheld < 0 or withheld > amount:
        raise ValidationError(
            {"pph23_withheld": "Withheld tax must be between 0 and the amount"})

    outstanding = invoice_outstanding(invoice)
    if amount > outstanding:
        raise ExceedsBalance(amount, outstanding)

    receipt = Receipt(
        number=next_number("RCV", date.year),
        date=date,
        invoice=invoice,
        client=invoice.client,
        amount=amount,
        pph23_withheld=withheld,
        bank_account_code=bank_account_code,
        description=description,
        created_by=user,
    )
    receipt.save()

    journal = post_journal(
        date,
        f"Receipt {receipt.number} - {invoice.number}",
        receipt_entries(receipt, invoice),
        source=(Receipt.doc_type, receipt.pk),
        user=user,
    )
    receipt.journal = journal
    receipt.save(update_fields=["journal"])

    refresh_invoice_status(invoice)

    log_action(
        action="apply_receipt",
        instance=receipt,
        user=user,
        changes={
            "invoice": invoice.number,
            "amount": amount,
            "pph23_withheld": withheld,
            "invoice_status": invoice.status,
        },
    )
    logger.info("Receipt %s on invoice %s: amount=%s pph23=%s",
                receipt.number, invoice.number, amount, withheld)
    return receipt, journal
