"""
Bills, invoices and manual journals.

Each create_* call is one transaction: the document, its lines and the
journal it produces commit together or not at all.
"""
import datetime
import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional

from django.core.exceptions import ValidationError
from django.db import transaction

from .. import conf
from ..exceptions import MissingProject
from ..models import (Bill, BillLine, Client, Invoice, InvoiceLine, Project,
                      Vendor)
from . import tax
from .audit_helper import log_action
from .entries import LineDraft, bill_entries, invoice_entries
from .periods import assert_period_open
from .posting import next_number, post_journal
from .reports import bill_outstanding, invoice_outstanding

logger = logging.getLogger(__name__)


def _resolve(model, obj):
    if obj is None or isinstance(obj, model):
        return obj
    try:
        return model.objects.get(pk=obj)
    except model.DoesNotExist:
        raise ValidationError(
            {model._meta.model_name: f"{model.__name__} {obj} does not exist"}
        ) from None


def _resolve_project(project):
    if project is None or isinstance(project, Project):
        return project
    # accept either a pk or a project code
    found = Project.objects.filter(code=str(project)).first()
    if found is None and str(project).isdigit():
        found = Project.objects.filter(pk=int(project)).first()
    if found is None:
        raise ValidationError({"project": f"Project {project} does not exist"})
    return found


def due_date_for(date, counterparty, due_date=None):
    """
    Explicit due date, else date + the counterparty's payment terms,
    falling back to LEDGER_DEFAULT_PAYMENT_TERMS when it has none.
    """
    if due_date is None:
        terms = counterparty.payment_terms
        if terms is None:
            terms = conf.default_payment_terms()
        due_date = date + datetime.timedelta(days=terms)
    if due_date < date:
        raise ValidationError({"due_date": "Due date is before the document date"})
    return due_date


def _parse_quantity(value, idx):
    try:
        quantity = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        quantity = None
    if quantity is None or not quantity.is_finite() or quantity <= 0:
        raise ValidationError(
            {f"lines[{idx}]": "quantity must be a positive number"})
    return quantity


def _line_rows(lines, account_key):
    """Validate raw line dicts and compute their amounts."""
    if not lines:
        raise ValidationError({"lines": "At least one line is required"})
    rows = []
    for idx, raw in enumerate(lines):
        account_code = raw.get(account_key)
        if not account_code:
            raise ValidationError({f"lines[{idx}]": f"{account_key} is required"})
        quantity = _parse_quantity(raw.get("quantity", 1), idx)
        unit_price = raw.get("unit_price", 0)
        if not isinstance(unit_price, int) or unit_price <= 0:
            raise ValidationError(
                {f"lines[{idx}]": "unit_price must be a positive whole rupiah amount"})
        amount = BillLine.line_amount(quantity, unit_price)
        if amount <= 0:
            raise ValidationError({f"lines[{idx}]": "Line amount must be positive"})
        rows.append({**raw, "quantity": quantity, "amount": amount})
    return rows


# ----------------------------
# Bills
# ----------------------------
@transaction.atomic
def create_bill(
    date,
    vendor,
    category: str,
    lines: List[Dict],
    *,
    project=None,
    faktur_pajak_number: Optional[str] = None,
    vendor_invoice_number: Optional[str] = None,
    due_date=None,
    description: str = "",
    user=None,
):
    """
    Create an approved bill and post its journal.

    lines: [{"description", "quantity", "unit_price",
             "expense_account_code", "project_code"?}, ...]
    Returns (bill, journal).
    """
    assert_period_open(date)
    vendor = _resolve(Vendor, vendor)
    project = _resolve_project(project)
    if category not in ("COGS", "OPEX"):
        raise ValidationError({"category": "Category must be COGS or OPEX"})

    rows = _line_rows(lines, "expense_account_code")
    for row in rows:
        # lines inherit the bill's project
        row["project_code"] = row.get("project_code") or (
            project.code if project else None)
    if category == "COGS":
        missing = [i for i, r in enumerate(rows) if not r["project_code"]]
        if missing:
            raise MissingProject(
                f"COGS bill lines {missing} have no project code")

    subtotal = sum(r["amount"] for r in rows)
    fp = (faktur_pajak_number or "").strip() or None
    taxes = tax.evaluate(tax.BILL, vendor, subtotal, faktur_pajak_number=fp)

    bill = Bill(
        number=next_number("BILL", date.year),
        date=date,
        due_date=due_date_for(date, vendor, due_date),
        vendor=vendor,
        vendor_invoice_number=vendor_invoice_number,
        category=category,
        project=project,
        faktur_pajak_number=fp,
        subtotal=subtotal,
        vat_amount=taxes.vat_amount,
        total=subtotal + taxes.vat_amount,
        description=description,
        created_by=user,
    )
    bill.full_clean(exclude=["journal", "reversal_journal", "created_by"])
    bill.save()

    bill_lines = []
    for idx, row in enumerate(rows):
        line = BillLine(
            bill=bill,
            description=row.get("description", ""),
            quantity=row["quantity"],
            unit_price=row["unit_price"],
            expense_account_id=row["expense_account_code"],
            project_code=row["project_code"],
            sort_order=idx,
        )
        line.save()
        bill_lines.append(line)

    journal = post_journal(
        date,
        f"Bill {bill.number} - {vendor.name}",
        bill_entries(bill, bill_lines, taxes.vat_amount),
        source=(Bill.doc_type, bill.pk),
        user=user,
    )
    bill.journal = journal
    bill.save(update_fields=["journal"])
    bill.transition_to("approved")

    log_action(action="create", instance=bill, user=user, changes={
        "total": bill.total, "vat_amount": bill.vat_amount,
        "journal": journal.number,
    })
    logger.info("Created bill %s total=%s (journal %s)",
                bill.number, bill.total, journal.number)
    return bill, journal


# ----------------------------
# Invoices
# ----------------------------
@transaction.atomic
def create_invoice(
    date,
    client,
    lines: List[Dict],
    *,
    due_date=None,
    project=None,
    description: str = "",
    user=None,
):
    """
    Create a sent invoice and post its journal.

    lines: [{"description", "quantity", "unit_price",
             "revenue_account_code"}, ...]
    Returns (invoice, journal).
    """
    assert_period_open(date)
    client = _resolve(Client, client)
    project = _resolve_project(project)

    rows = _line_rows(lines, "revenue_account_code")
    subtotal = sum(r["amount"] for r in rows)
    taxes = tax.evaluate(tax.INVOICE, client, subtotal)

    invoice = Invoice(
        number=next_number("INV", date.year),
        date=date,
        due_date=due_date_for(date, client, due_date),
        client=client,
        project=project,
        subtotal=subtotal,
        vat_amount=taxes.vat_amount,
        total=subtotal + taxes.vat_amount,
        description=description,
        created_by=user,
    )
    invoice.full_clean(exclude=["journal", "reversal_journal", "created_by"])
    invoice.save()

    invoice_lines = []
    for idx, row in enumerate(rows):
        line = InvoiceLine(
            invoice=invoice,
            description=row.get("description", ""),
            quantity=row["quantity"],
            unit_price=row["unit_price"],
            revenue_account_id=row["revenue_account_code"],
            sort_order=idx,
        )
        line.save()
        invoice_lines.append(line)

    journal = post_journal(
        date,
        f"Invoice {invoice.number} - {client.name}",
        invoice_entries(invoice, invoice_lines, taxes.vat_amount),
        source=(Invoice.doc_type, invoice.pk),
        user=user,
    )
    invoice.journal = journal
    invoice.save(update_fields=["journal"])
    invoice.transition_to("sent")

    log_action(action="create", instance=invoice, user=user, changes={
        "total": invoice.total, "vat_amount": invoice.vat_amount,
        "journal": journal.number,
    })
    logger.info("Created invoice %s total=%s (journal %s)",
                invoice.number, invoice.total, journal.number)
    return invoice, journal


# ----------------------------
# Manual journals
# ----------------------------
def create_manual_journal(date, description, lines: List[Dict], user=None):
    """
    Post an adjusting entry typed in by hand.

    lines: [{"account_code", "debit", "credit", "description"?,
             "project_code"?}, ...]
    """
    drafts = [
        LineDraft(
            account_code=raw.get("account_code"),
            debit=raw.get("debit") or 0,
            credit=raw.get("credit") or 0,
            description=raw.get("description", ""),
            project_code=raw.get("project_code"),
        )
        for raw in lines or []
    ]
    return post_journal(
        date, description, drafts, source=("manual_journal", None), user=user)


# ----------------------------
# Status projection
# ----------------------------
def refresh_bill_status(bill):
    """Recompute a bill's status from its ledger outstanding balance."""
    if bill.is_voided or bill.journal_id is None:
        return bill.status
    outstanding = bill_outstanding(bill)
    if outstanding <= 0:
        status = "paid"
    elif outstanding < bill.total:
        status = "partial"
    else:
        status = "approved"
    bill.transition_to(status)
    return status


def refresh_invoice_status(invoice):
    if invoice.is_voided or invoice.journal_id is None:
        return invoice.status
    outstanding = invoice_outstanding(invoice)
    if outstanding <= 0:
        status = "paid"
    elif outstanding < invoice.total:
        status = "partial"
    else:
        status = "sent"
    invoice.transition_to(status)
    return status
