"""
Ledger aggregator: every figure here is derived from posted journal lines.

Nothing in this module writes. Integrity problems found while reading
(an unbalanced trial balance, a balance sheet that does not tie) are logged
on the ledger_core.integrity logger and returned flagged, never raised.
"""
import logging

from django.db.models import Q, Sum, Value
from django.db.models.functions import Coalesce

from .. import conf
from ..models import (Account, Bill, Invoice, JournalLine, PeriodSnapshot,
                      PeriodStatus, period_of)
from ..models.account import (BALANCE_SHEET_TYPES, PROFIT_LOSS_TYPES,
                              signed_balance)
from .periods import period_bounds

logger = logging.getLogger(__name__)
integrity_logger = logging.getLogger("ledger_core.integrity")

AGING_BUCKETS = ("0-30", "31-60", "61-90", "90+")


def _sum_side(qs, field):
    return qs.aggregate(total=Sum(field))["total"] or 0


def _ledger_lines(as_of=None):
    return JournalLine.objects.in_ledger().as_of(as_of)


# ----------------------------
# Single account
# ----------------------------
def account_balance(code, as_of=None):
    account = Account.objects.get(code=code)
    qs = _ledger_lines(as_of).for_account(code)
    debit = _sum_side(qs, "debit")
    credit = _sum_side(qs, "credit")
    return {
        "code": account.code,
        "name": account.name,
        "ac_type": account.ac_type,
        "debit": debit,
        "credit": credit,
        "balance": signed_balance(account.ac_type, debit, credit),
    }


def general_ledger(account_code, period=None, as_of=None):
    """
    Lines of one account with a running balance in the account's normal
    direction, ordered by (date, journal number, line order).
    """
    account = Account.objects.get(code=account_code)
    qs = _ledger_lines(as_of).for_account(account_code)

    opening = 0
    if period:
        start, end = period_bounds(period)
        before = qs.filter(journal__date__lt=start)
        opening = signed_balance(
            account.ac_type,
            _sum_side(before, "debit"),
            _sum_side(before, "credit"),
        )
        qs = qs.between(start, end)

    rows = []
    running = opening
    for line in qs.select_related("journal").ledger_order():
        running += signed_balance(account.ac_type, line.debit, line.credit)
        rows.append({
            "date": line.journal.date,
            "journal_number": line.journal.number,
            "journal_kind": line.journal.kind,
            "description": line.description or line.journal.description,
            "project_code": line.project_code,
            "debit": line.debit,
            "credit": line.credit,
            "balance": running,
        })

    return {
        "account": {"code": account.code, "name": account.name,
                    "ac_type": account.ac_type,
                    "normal_side": account.normal_side},
        "period": period,
        "as_of": as_of,
        "opening_balance": opening,
        "rows": rows,
        "closing_balance": running,
    }


# ----------------------------
# Trial balance
# ----------------------------
def _snapshot_for(as_of):
    """Snapshot rows when as_of is the last day of a CLOSED period."""
    period = period_of(as_of)
    _, end = period_bounds(period)
    if as_of != end:
        return None
    if not PeriodStatus.objects.filter(period=period, status="CLOSED").exists():
        return None
    rows = list(
        PeriodSnapshot.objects.filter(period=period)
        .select_related("account").order_by("account")
    )
    return rows or None


def _account_totals(as_of=None, start=None):
    line_filter = Q(lines__journal__status__in=("posted", "reversed"))
    if as_of is not None:
        line_filter &= Q(lines__journal__date__lte=as_of)
    if start is not None:
        line_filter &= Q(lines__journal__date__gte=start)
    return (
        Account.objects.annotate(
            total_debit=Coalesce(
                Sum("lines__debit", filter=line_filter), Value(0)),
            total_credit=Coalesce(
                Sum("lines__credit", filter=line_filter), Value(0)),
        )
        .order_by("code")
    )


def trial_balance(as_of):
    """
    Debit, credit and balance per account up to as_of.
    Inactive accounts are listed only while they still carry activity.
    """
    snapshot = _snapshot_for(as_of) if as_of is not None else None
    rows = []
    if snapshot is not None:
        source = "snapshot"
        for snap in snapshot:
            acc = snap.account
            if not acc.is_active and not (snap.debit_total or snap.credit_total):
                continue
            rows.append({
                "code": acc.code, "name": acc.name, "ac_type": acc.ac_type,
                "debit": snap.debit_total, "credit": snap.credit_total,
                "balance": snap.balance,
            })
    else:
        source = "ledger"
        for acc in _account_totals(as_of):
            if not acc.is_active and not (acc.total_debit or acc.total_credit):
                continue
            rows.append({
                "code": acc.code, "name": acc.name, "ac_type": acc.ac_type,
                "debit": acc.total_debit, "credit": acc.total_credit,
                "balance": signed_balance(
                    acc.ac_type, acc.total_debit, acc.total_credit),
            })

    total_debit = sum(r["debit"] for r in rows)
    total_credit = sum(r["credit"] for r in rows)
    is_balanced = total_debit == total_credit
    if not is_balanced:
        integrity_logger.critical(
            "Trial balance out of balance as of %s: debit=%s credit=%s",
            as_of, total_debit, total_credit,
            extra={"as_of": str(as_of), "source": source},
        )
    return {
        "as_of": as_of,
        "source": source,
        "rows": rows,
        "total_debit": total_debit,
        "total_credit": total_credit,
        "is_balanced": is_balanced,
    }


# ----------------------------
# Profit & loss
# ----------------------------
def _pl_section(accounts, ac_type):
    rows = [
        {"code": a.code, "name": a.name,
         "amount": signed_balance(a.ac_type, a.total_debit, a.total_credit)}
        for a in accounts
        if a.ac_type == ac_type and (a.total_debit or a.total_credit)
    ]
    return rows, sum(r["amount"] for r in rows)


def profit_loss(start_period, end_period=None):
    start, _ = period_bounds(start_period)
    _, end = period_bounds(end_period or start_period)
    accounts = list(
        _account_totals(as_of=end, start=start)
        .filter(ac_type__in=PROFIT_LOSS_TYPES)
    )

    sections = {}
    totals = {}
    for ac_type in ("REVENUE", "COGS", "OPEX", "OTHER_INCOME",
                    "OTHER_EXPENSE", "TAX_EXPENSE"):
        sections[ac_type], totals[ac_type] = _pl_section(accounts, ac_type)

    gross_profit = totals["REVENUE"] - totals["COGS"]
    operating_profit = gross_profit - totals["OPEX"]
    net_profit = (operating_profit + totals["OTHER_INCOME"]
                  - totals["OTHER_EXPENSE"] - totals["TAX_EXPENSE"])
    return {
        "start_period": start_period,
        "end_period": end_period or start_period,
        "start_date": start,
        "end_date": end,
        "revenue": totals["REVENUE"],
        "cogs": totals["COGS"],
        "gross_profit": gross_profit,
        "opex": totals["OPEX"],
        "operating_profit": operating_profit,
        "other_income": totals["OTHER_INCOME"],
        "other_expense": totals["OTHER_EXPENSE"],
        "tax_expense": totals["TAX_EXPENSE"],
        "net_profit": net_profit,
        "accounts": sections,
    }


# ----------------------------
# Balance sheet
# ----------------------------
def balance_sheet(as_of):
    """
    Assets = liabilities + equity, where equity includes current earnings
    (all P&L activity up to as_of, since nothing is closed into retained
    earnings by journal).
    """
    sections = {"ASSET": [], "LIABILITY": [], "EQUITY": []}
    current_earnings = 0
    for acc in _account_totals(as_of):
        if not (acc.total_debit or acc.total_credit):
            continue
        balance = signed_balance(acc.ac_type, acc.total_debit, acc.total_credit)
        if acc.ac_type in BALANCE_SHEET_TYPES:
            sections[acc.ac_type].append(
                {"code": acc.code, "name": acc.name, "balance": balance})
        elif acc.ac_type in PROFIT_LOSS_TYPES:
            # credit-normal income adds, debit-normal expense subtracts
            current_earnings += acc.total_credit - acc.total_debit

    total_assets = sum(r["balance"] for r in sections["ASSET"])
    total_liabilities = sum(r["balance"] for r in sections["LIABILITY"])
    total_equity = sum(r["balance"] for r in sections["EQUITY"]) + current_earnings
    difference = total_assets - (total_liabilities + total_equity)
    is_balanced = difference == 0

    warning = None
    if not is_balanced:
        warning = (f"Balance sheet does not balance as of {as_of}: "
                   f"difference {difference}")
        integrity_logger.critical(warning, extra={"as_of": str(as_of)})

    return {
        "as_of": as_of,
        "assets": sections["ASSET"],
        "liabilities": sections["LIABILITY"],
        "equity": sections["EQUITY"],
        "current_earnings": current_earnings,
        "total_assets": total_assets,
        "total_liabilities": total_liabilities,
        "total_equity": total_equity,
        "is_balanced": is_balanced,
        "difference": difference,
        "warning": warning,
    }


# ----------------------------
# Outstanding balances
# ----------------------------
def bill_outstanding(bill, as_of=None):
    """AP still owed on a bill, from the payable lines of its own journals."""
    sources = [
        (Bill.doc_type, [bill.pk]),
        ("vendor_payment", list(bill.payments.values_list("pk", flat=True))),
    ]
    qs = (
        _ledger_lines(as_of)
        .for_account(conf.control_account("payable"))
        .for_sources(sources)
    )
    return _sum_side(qs, "credit") - _sum_side(qs, "debit")


def invoice_outstanding(invoice, as_of=None):
    """AR still due on an invoice, from the receivable lines of its journals."""
    sources = [
        (Invoice.doc_type, [invoice.pk]),
        ("cash_receipt", list(invoice.receipts.values_list("pk", flat=True))),
    ]
    qs = (
        _ledger_lines(as_of)
        .for_account(conf.control_account("receivable"))
        .for_sources(sources)
    )
    return _sum_side(qs, "debit") - _sum_side(qs, "credit")


# ----------------------------
# Aging
# ----------------------------
def aging_bucket(days_overdue):
    # not yet due counts as current
    if days_overdue <= 30:
        return "0-30"
    if days_overdue <= 60:
        return "31-60"
    if days_overdue <= 90:
        return "61-90"
    return "90+"


def _aging(documents, outstanding_fn, counterparty_attr, as_of):
    rows = []
    buckets = {b: 0 for b in AGING_BUCKETS}
    for doc in documents:
        outstanding = outstanding_fn(doc, as_of)
        if outstanding <= 0:
            continue
        days_overdue = (as_of - doc.due_date).days
        bucket = aging_bucket(days_overdue)
        buckets[bucket] += outstanding
        rows.append({
            "id": doc.pk,
            "number": doc.number,
            "counterparty": getattr(doc, counterparty_attr).name,
            "date": doc.date,
            "due_date": doc.due_date,
            "total": doc.total,
            "outstanding": outstanding,
            "days_overdue": max(days_overdue, 0),
            "bucket": bucket,
        })
    return {
        "as_of": as_of,
        "rows": rows,
        "buckets": buckets,
        "total": sum(r["outstanding"] for r in rows),
    }


def ap_aging(as_of):
    bills = (
        Bill.objects.filter(date__lte=as_of, journal__isnull=False)
        .select_related("vendor").order_by("due_date", "number")
    )
    return _aging(bills, bill_outstanding, "vendor", as_of)


def ar_aging(as_of):
    invoices = (
        Invoice.objects.filter(date__lte=as_of, journal__isnull=False)
        .select_related("client").order_by("due_date", "number")
    )
    return _aging(invoices, invoice_outstanding, "client", as_of)


# ----------------------------
# Tax position
# ----------------------------
def vat_position(period):
    """PPN Keluaran less PPN Masukan booked in one period."""
    start, end = period_bounds(period)
    lines = _ledger_lines().between(start, end)

    out_qs = lines.for_account(conf.control_account("vat_out"))
    in_qs = lines.for_account(conf.control_account("vat_in"))
    pph_qs = lines.for_account(conf.control_account("pph23_payable"))

    vat_output = _sum_side(out_qs, "credit") - _sum_side(out_qs, "debit")
    vat_input = _sum_side(in_qs, "debit") - _sum_side(in_qs, "credit")
    net = vat_output - vat_input
    return {
        "period": period,
        "vat_output": vat_output,
        "vat_input": vat_input,
        "net_payable": net,
        "position": "payable" if net > 0 else "refundable" if net < 0 else "nil",
        "pph23_withheld": _sum_side(pph_qs, "credit") - _sum_side(pph_qs, "debit"),
    }
