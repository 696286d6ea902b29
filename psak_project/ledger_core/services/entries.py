"""
Document → journal line builders.

Each builder returns LineDraft rows that balance by construction; the
journal store re-checks the balance before anything is written.
"""
from dataclasses import dataclass
from typing import List, Optional

from .. import conf


@dataclass
class LineDraft:
    account_code: str
    debit: int = 0
    credit: int = 0
    description: str = ""
    project_code: Optional[str] = None


def bill_entries(bill, lines, vat_amount) -> List[LineDraft]:
    """
    DR expense per line, DR PPN Masukan (when VAT applies), CR Utang Usaha.
    `lines` are BillLine-like rows with amount/expense_account_id/project_code.
    """
    drafts = [
        LineDraft(
            account_code=line.expense_account_id,
            debit=line.amount,
            description=line.description,
            project_code=line.project_code,
        )
        for line in lines
    ]
    if vat_amount > 0:
        drafts.append(LineDraft(
            account_code=conf.control_account("vat_in"),
            debit=vat_amount,
            description=f"PPN Masukan - {bill.faktur_pajak_number}",
        ))
    drafts.append(LineDraft(
        account_code=conf.control_account("payable"),
        credit=sum(d.debit for d in drafts),
        description=f"Bill {bill.number} - {bill.vendor.name}",
    ))
    return drafts


def invoice_entries(invoice, lines, vat_amount) -> List[LineDraft]:
    """DR Piutang Usaha for the total, CR revenue per line, CR PPN Keluaran."""
    project_code = invoice.project.code if invoice.project_id else None
    credits = [
        LineDraft(
            account_code=line.revenue_account_id,
            credit=line.amount,
            description=line.description,
            project_code=project_code,
        )
        for line in lines
    ]
    if vat_amount > 0:
        credits.append(LineDraft(
            account_code=conf.control_account("vat_out"),
            credit=vat_amount,
            description="PPN Keluaran",
        ))
    receivable = LineDraft(
        account_code=conf.control_account("receivable"),
        debit=sum(c.credit for c in credits),
        description=f"Invoice {invoice.number} - {invoice.client.name}",
    )
    return [receivable] + credits


def payment_entries(payment, bill) -> List[LineDraft]:
    """DR Utang Usaha (net + withheld), CR bank (net), CR Utang PPh 23."""
    drafts = [
        LineDraft(
            account_code=conf.control_account("payable"),
            debit=payment.applied_amount,
            description=f"Payment {payment.number} - {bill.number}",
        ),
        LineDraft(
            account_code=payment.bank_account_code,
            credit=payment.amount,
            description=f"Payment to {bill.vendor.name}",
        ),
    ]
    if payment.pph23_withheld > 0:
        drafts.append(LineDraft(
            account_code=conf.control_account("pph23_payable"),
            credit=payment.pph23_withheld,
            description=f"PPh 23 withheld - {bill.number}",
        ))
    return drafts


def receipt_entries(receipt, invoice) -> List[LineDraft]:
    """DR bank (cash received), DR PPh 23 prepaid (withheld), CR Piutang Usaha."""
    drafts = []
    if receipt.cash_amount > 0:
        drafts.append(LineDraft(
            account_code=receipt.bank_account_code,
            debit=receipt.cash_amount,
            description=f"Receipt {receipt.number}",
        ))
    if receipt.pph23_withheld > 0:
        drafts.append(LineDraft(
            account_code=conf.control_account("pph23_prepaid"),
            debit=receipt.pph23_withheld,
            description=f"PPh 23 withheld by {invoice.client.name}",
        ))
    drafts.append(LineDraft(
        account_code=conf.control_account("receivable"),
        credit=receipt.applied_amount,
        description=f"Receipt for {invoice.number}",
    ))
    return drafts


def mirror_entries(lines) -> List[LineDraft]:
    """Exact debit/credit swap of posted JournalLine rows."""
    return [
        LineDraft(
            account_code=line.account_id,
            debit=line.credit,
            credit=line.debit,
            description=f"REVERSAL: {line.description}".strip(),
            project_code=line.project_code,
        )
        for line in lines
    ]
