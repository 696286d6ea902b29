"""
Journal store: the single write path into the ledger.

Every posting (documents, manual entries, reversals) goes through
post_journal(), so the balance rule, account checks and the period lock
are enforced in exactly one place.
"""
import logging
from typing import Iterable, Optional

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from ..exceptions import MissingProject, UnbalancedJournalError
from ..models import (Account, DocumentSequence, Journal, JournalLine,
                      Project)
from .audit_helper import log_action
from .entries import LineDraft
from .periods import assert_period_open

logger = logging.getLogger(__name__)

JOURNAL_PREFIX = "JRN"


# ----------------------------
# Sequential numbers
# ----------------------------
def next_number(prefix: str, year: int) -> str:
    """
    Allocate PREFIX-YYYY-NNNN.

    The sequence row is locked for the rest of the caller's transaction, so
    concurrent posts serialise here and never share a number.
    """
    with transaction.atomic():
        seq, _ = DocumentSequence.objects.get_or_create(name=prefix, year=year)
        seq = DocumentSequence.objects.select_for_update().get(pk=seq.pk)
        value = seq.next_value
        seq.next_value = value + 1
        seq.save(update_fields=["next_value", "updated_at"])
    return f"{prefix}-{year:04d}-{value:04d}"


# ----------------------------
# Validation
# ----------------------------
def validate_lines(drafts: Iterable[LineDraft]):
    """
    Check every line before a single row is written.
    Raises ValidationError / MissingProject / UnbalancedJournalError.
    """
    drafts = list(drafts)
    if len(drafts) < 2:
        raise ValidationError("A journal needs at least two lines.")

    codes = {d.account_code for d in drafts}
    accounts = Account.objects.in_bulk(list(codes), field_name="code")

    errors = {}
    project_codes = set()
    for idx, d in enumerate(drafts):
        key = f"lines[{idx}]"
        account = accounts.get(d.account_code)
        if account is None:
            errors[key] = f"Unknown account {d.account_code}"
            continue
        if not account.is_active:
            errors[key] = f"Account {d.account_code} is inactive"
            continue
        if not isinstance(d.debit, int) or not isinstance(d.credit, int):
            errors[key] = "Amounts must be whole rupiah"
            continue
        if d.debit < 0 or d.credit < 0:
            errors[key] = "Debit and credit must be >= 0"
            continue
        if (d.debit > 0) == (d.credit > 0):
            errors[key] = "Exactly one of debit or credit must be non-zero"
            continue
        if account.ac_type == "COGS" and not d.project_code:
            raise MissingProject(
                f"COGS line on {d.account_code} has no project code")
        if d.project_code:
            project_codes.add(d.project_code)
    if errors:
        raise ValidationError(errors)

    if project_codes:
        known = set(
            Project.objects.filter(code__in=project_codes)
            .values_list("code", flat=True)
        )
        unknown = sorted(project_codes - known)
        if unknown:
            raise ValidationError(
                {"project_code": f"Unknown project(s): {', '.join(unknown)}"})

    total_debit = sum(d.debit for d in drafts)
    total_credit = sum(d.credit for d in drafts)
    if total_debit != total_credit:
        logger.error(
            "Rejected unbalanced journal",
            extra={"total_debit": total_debit, "total_credit": total_credit},
        )
        raise UnbalancedJournalError(total_debit, total_credit)
    return total_debit


# ----------------------------
# Posting
# ----------------------------
def post_journal(
    date,
    description: str,
    lines: Iterable[LineDraft],
    *,
    source=None,
    user=None,
    reversal_of: Optional[Journal] = None,
) -> Journal:
    """
    Post a balanced journal: header + every line, or nothing.

    `source` is an optional (source_doc_type, source_doc_id) back-reference.
    """
    drafts = list(lines)
    with transaction.atomic():
        assert_period_open(date)
        total = validate_lines(drafts)

        source_type, source_id = source if source else (None, None)
        je = Journal.objects.create(
            number=next_number(JOURNAL_PREFIX, date.year),
            date=date,
            description=description or "",
            status="posted",
            posted_at=timezone.now(),
            source_doc_type=source_type,
            source_doc_id=str(source_id) if source_id is not None else None,
            reversal_of=reversal_of,
            created_by=user,
        )
        # header is already posted, so lines go in through bulk_create
        # (validated above) instead of JournalLine.save()
        JournalLine.objects.bulk_create([
            JournalLine(
                journal=je,
                account_id=d.account_code,
                debit=d.debit,
                credit=d.credit,
                description=(d.description or "")[:400],
                project_code=d.project_code or None,
                sort_order=idx,
            )
            for idx, d in enumerate(drafts)
        ])
        log_action(
            action="post",
            instance=je,
            user=user,
            changes={"number": je.number, "total": total,
                     "source": [source_type, source_id]},
        )
    logger.info(
        "Posted journal %s (%s) total=%s", je.number, je.period, total,
        extra={"journal": je.number, "source_doc_type": source_type},
    )
    return je


def post_draft(journal_id, user=None) -> Journal:
    """Post a DRAFT journal built by hand: allocates its number and freezes it."""
    with transaction.atomic():
        je = Journal.objects.select_for_update().get(pk=journal_id)
        if je.status != "draft":
            raise ValidationError(f"Journal {je.number} is already {je.status}")
        assert_period_open(je.date)
        lines = list(je.lines.all())
        validate_lines([
            LineDraft(l.account_id, l.debit, l.credit, l.description,
                      l.project_code)
            for l in lines
        ])
        je.number = next_number(JOURNAL_PREFIX, je.date.year)
        je.status = "posted"
        je.posted_at = timezone.now()
        if user:
            je.created_by = user
        je.save()
        log_action(action="post", instance=je, user=user,
                   changes={"number": je.number})
    logger.info("Posted draft journal %s", je.number)
    return je


# ----------------------------
# Reads
# ----------------------------
def get_journal(ref) -> Journal:
    """Look a journal up by primary key or by its JRN-YYYY-NNNN number."""
    qs = Journal.objects.prefetch_related("lines")
    if isinstance(ref, int) or (isinstance(ref, str) and ref.isdigit()):
        return qs.get(pk=int(ref))
    return qs.get(number=ref)


def list_journals(
    *,
    period=None,
    status=None,
    source_doc_type=None,
    account_code=None,
    date_from=None,
    date_to=None,
):
    qs = Journal.objects.all()
    if period:
        qs = qs.in_period(period)
    if status:
        qs = qs.filter(status=status)
    if source_doc_type:
        qs = qs.filter(source_doc_type=source_doc_type)
    if account_code:
        qs = qs.filter(Q(lines__account_id=account_code)).distinct()
    if date_from:
        qs = qs.filter(date__gte=date_from)
    if date_to:
        qs = qs.filter(date__lte=date_to)
    return qs.ledger_order()
