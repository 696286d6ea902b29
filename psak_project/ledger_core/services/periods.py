"""
Period lock manager.

    Posting date determines the period (YYYY-MM).
    A period with no PeriodStatus row, or status OPEN, accepts postings.
    Closing needs a completed pre-close audit with no CRITICAL issues and
    stores a balance snapshot; reopening is privileged and always logged.
"""
import calendar
import datetime
import logging

from django.core.exceptions import PermissionDenied, ValidationError
from django.db import transaction
from django.db.models import Count, F, Q, Sum
from django.utils import timezone

from ..exceptions import PeriodCloseBlockedError, PeriodLockedError
from ..models import (Account, Bill, JournalLine, Journal, Payment,
                      PeriodAudit, PeriodSnapshot, PeriodStatus, period_of)
from ..models.account import signed_balance
from ..models.period import period_validator
from .audit_helper import log_action

logger = logging.getLogger(__name__)


def period_for(date) -> str:
    return period_of(date)


def _as_period(date_or_period) -> str:
    if isinstance(date_or_period, (datetime.date, datetime.datetime)):
        return period_of(date_or_period)
    period_validator(date_or_period)
    return date_or_period


def period_bounds(period):
    """(first day, last day) of a YYYY-MM period."""
    period = _as_period(period)
    year, month = int(period[:4]), int(period[5:7])
    last = calendar.monthrange(year, month)[1]
    return datetime.date(year, month, 1), datetime.date(year, month, last)


def is_period_closed(date_or_period) -> bool:
    period = _as_period(date_or_period)
    return PeriodStatus.objects.filter(period=period, status="CLOSED").exists()


def assert_period_open(date_or_period):
    """
    Lock the period's status row and refuse the write if it is CLOSED.

    Called inside the writer's transaction, the row lock is held until
    commit, so a write and close_period() on the same period serialise.
    """
    period = _as_period(date_or_period)
    with transaction.atomic():
        status, _ = PeriodStatus.objects.get_or_create(period=period)
        status = PeriodStatus.objects.select_for_update().get(pk=status.pk)
    if status.is_closed:
        logger.warning("Rejected write into closed period %s", period)
        raise PeriodLockedError(period)
    return status


# ----------------------------
# Pre-close audit
# ----------------------------
def _issue(issue_type, severity, message, action_required,
           entity_type=None, entity_id=None):
    return {
        "issue_type": issue_type,
        "severity": severity,
        "message": message,
        "action_required": action_required,
        "related_entity_type": entity_type,
        "related_entity_id": entity_id,
    }


def _unbalanced_journals(period):
    qs = (
        Journal.objects.in_ledger().in_period(period)
        .annotate(td=Sum("lines__debit"), tc=Sum("lines__credit"))
        .exclude(td=F("tc"))
    )
    for je in qs:
        yield _issue(
            "accounting_error", "CRITICAL",
            f"Journal {je.number} is not balanced "
            f"(debit {je.td or 0}, credit {je.tc or 0})",
            "Void the journal and post a balanced correction",
            "journal", je.pk,
        )


def _payments_missing_pph23(start, end):
    payments = (
        Payment.objects.filter(
            date__range=(start, end), voided_at__isnull=True,
            pph23_withheld=0, vendor__subject_to_pph23=True,
        )
        .select_related("vendor", "bill")
    )
    for payment in payments:
        # Withholding is taken once per bill, so a later partial payment
        # with nothing withheld is fine if an earlier one carried it
        withheld_elsewhere = Payment.objects.filter(
            bill_id=payment.bill_id, voided_at__isnull=True,
            pph23_withheld__gt=0,
        ).exists()
        if withheld_elsewhere:
            continue
        yield _issue(
            "tax_risk", "CRITICAL",
            f"Payment {payment.number} to {payment.vendor.name} has no "
            f"PPh 23 withholding",
            "Void payment and recreate with PPh 23 withholding",
            "payment", payment.pk,
        )


def _bills_vat_without_faktur(start, end):
    bills = Bill.objects.filter(
        date__range=(start, end), voided_at__isnull=True, vat_amount__gt=0,
    ).filter(Q(faktur_pajak_number__isnull=True) | Q(faktur_pajak_number=""))
    for bill in bills:
        yield _issue(
            "tax_risk", "HIGH",
            f"Bill {bill.number} claims IDR {bill.vat_amount} input VAT "
            f"without Faktur Pajak",
            "Add Faktur Pajak number or remove VAT claim",
            "bill", bill.pk,
        )


def _cogs_without_project(period):
    lines = (
        JournalLine.objects.in_ledger()
        .filter(journal__period=period, account__ac_type="COGS")
        .filter(Q(project_code__isnull=True) | Q(project_code=""))
        .select_related("journal")
    )
    for line in lines:
        yield _issue(
            "accounting_error", "HIGH",
            f"COGS line on {line.account_id} in journal "
            f"{line.journal.number} has no project code",
            "Void and repost with a project code",
            "journal", line.journal_id,
        )


def _duplicate_bills(start, end):
    dupes = (
        Bill.objects.filter(date__range=(start, end), voided_at__isnull=True)
        .values("vendor_id", "vendor__name", "date", "total")
        .annotate(n=Count("id"))
        .filter(n__gt=1)
    )
    for dup in dupes:
        yield _issue(
            "data_quality", "MEDIUM",
            f"Potential duplicate: {dup['n']} bills on {dup['date']} for "
            f"vendor {dup['vendor__name']} with total {dup['total']}",
            "Review and void duplicate if confirmed",
            "bill", None,
        )


def run_period_audit(period) -> PeriodAudit:
    """Rule-based checks a period must pass before it can be closed."""
    from .reports import vat_position  # reports depends on this module

    period = _as_period(period)
    start, end = period_bounds(period)
    audit = PeriodAudit.objects.create(period=period)

    issues = []
    issues.extend(_unbalanced_journals(period))
    issues.extend(_payments_missing_pph23(start, end))
    issues.extend(_bills_vat_without_faktur(start, end))
    issues.extend(_cogs_without_project(period))
    issues.extend(_duplicate_bills(start, end))

    counts = {s: 0 for s in ("CRITICAL", "HIGH", "MEDIUM", "LOW")}
    for issue in issues:
        counts[issue["severity"]] += 1
    vat = vat_position(period)

    audit.issues = issues
    audit.metrics = {
        "total_journals": Journal.objects.in_ledger().in_period(period).count(),
        "issues_found": len(issues),
        "critical_issues": counts["CRITICAL"],
        "high_issues": counts["HIGH"],
        "medium_issues": counts["MEDIUM"],
        "low_issues": counts["LOW"],
        "vat_output": vat["vat_output"],
        "vat_input": vat["vat_input"],
        "vat_net_payable": vat["net_payable"],
    }
    if issues:
        audit.summary = (
            f"{len(issues)} issue(s) found for {period}: "
            f"{counts['CRITICAL']} critical, {counts['HIGH']} high, "
            f"{counts['MEDIUM']} medium."
        )
    else:
        audit.summary = f"No issues found for {period}."
    audit.status = "COMPLETED"
    audit.completed_at = timezone.now()
    audit.full_clean()
    audit.save()

    logger.info("Period audit %s for %s: %s", audit.pk, period, audit.summary)
    return audit


# ----------------------------
# Close / reopen
# ----------------------------
def cumulative_account_totals(as_of):
    """{account_code: (debit_total, credit_total)} for the ledger up to as_of."""
    rows = (
        JournalLine.objects.in_ledger().as_of(as_of)
        .values("account_id")
        .annotate(d=Sum("debit"), c=Sum("credit"))
    )
    return {r["account_id"]: (r["d"] or 0, r["c"] or 0) for r in rows}


def build_snapshot(period):
    """Replace the snapshot rows of a period with balances at its last day."""
    _, end = period_bounds(period)
    totals = cumulative_account_totals(end)
    PeriodSnapshot.objects.filter(period=period).delete()
    rows = []
    for account in Account.objects.order_by("code"):
        debit, credit = totals.get(account.code, (0, 0))
        rows.append(PeriodSnapshot(
            period=period,
            snapshot_date=end,
            account=account,
            debit_total=debit,
            credit_total=credit,
            balance=signed_balance(account.ac_type, debit, credit),
        ))
    PeriodSnapshot.objects.bulk_create(rows)
    return list(PeriodSnapshot.objects.filter(period=period).order_by("account"))


def close_period(period, audit_id, user=None):
    """
    Close a period after a clean audit.
    Returns the snapshot rows taken at the period's last day.
    """
    period = _as_period(period)
    with transaction.atomic():
        status, _ = PeriodStatus.objects.get_or_create(period=period)
        # Same row lock assert_period_open() takes for every write
        status = PeriodStatus.objects.select_for_update().get(pk=status.pk)
        if status.is_closed:
            raise PeriodLockedError(period, f"Period {period} is already closed")

        if audit_id is None:
            raise PeriodCloseBlockedError(
                period, message=f"Period {period} needs a completed audit before closing")
        try:
            audit = PeriodAudit.objects.get(pk=audit_id)
        except PeriodAudit.DoesNotExist:
            raise PeriodCloseBlockedError(
                period, message=f"Audit {audit_id} does not exist") from None
        if audit.period != period or audit.status != "COMPLETED":
            raise PeriodCloseBlockedError(
                period,
                message=f"Audit {audit_id} is not a completed audit of {period}",
            )
        critical = audit.critical_issues
        if critical:
            logger.warning(
                "Close of %s blocked by %d critical issue(s)", period, len(critical))
            raise PeriodCloseBlockedError(period, critical)

        snapshot = build_snapshot(period)
        status.status = "CLOSED"
        status.closed_at = timezone.now()
        status.closed_by = user if getattr(user, "is_authenticated", False) else None
        status.audit = audit
        status.save()

        log_action(
            action="close_period",
            instance=status,
            user=user,
            changes={"period": period, "audit_id": audit.pk,
                     "accounts": len(snapshot)},
        )
    logger.info("Closed period %s (audit %s, %d snapshot rows)",
                period, audit.pk, len(snapshot))
    return snapshot


def reopen_period(period, user, reason):
    """Flip a CLOSED period back to OPEN. Requires ledger_core.reopen_period."""
    period = _as_period(period)
    if user is None or not user.has_perm("ledger_core.reopen_period"):
        raise PermissionDenied("Reopening a period requires the reopen_period permission")
    if not (reason or "").strip():
        raise ValidationError({"reason": "A reason is required to reopen a period"})

    with transaction.atomic():
        try:
            status = PeriodStatus.objects.select_for_update().get(period=period)
        except PeriodStatus.DoesNotExist:
            raise ValidationError(f"Period {period} is not closed") from None
        if not status.is_closed:
            raise ValidationError(f"Period {period} is not closed")

        status.status = "OPEN"
        status.reopened_at = timezone.now()
        status.reopened_by = user
        status.reopen_reason = reason
        status.save()
        log_action(
            action="reopen_period",
            instance=status,
            user=user,
            reason=reason,
            changes={"period": period, "status": ["CLOSED", "OPEN"]},
        )
    logger.warning("Period %s reopened by %s: %s", period, user, reason)
    return status
