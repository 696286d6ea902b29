import datetime
import logging

from celery import shared_task
from django.db import transaction
from django.utils import timezone

logger = logging.getLogger(__name__)


def _parse_date(value):
    if value is None:
        return timezone.localdate()
    if isinstance(value, datetime.date):
        return value
    return datetime.date.fromisoformat(value)


@shared_task  # register this function as a Celery task
def check_ledger_integrity(as_of=None):
    """
    Re-derive the trial balance and balance sheet and report whether they tie.
    Problems are logged by the report functions on ledger_core.integrity.
    """
    # import lazily to avoid circular imports at module import time
    from .services.reports import balance_sheet, trial_balance

    as_of = _parse_date(as_of)
    tb = trial_balance(as_of)
    bs = balance_sheet(as_of)
    result = {
        "as_of": as_of.isoformat(),
        "trial_balance_ok": tb["is_balanced"],
        "total_debit": tb["total_debit"],
        "total_credit": tb["total_credit"],
        "balance_sheet_ok": bs["is_balanced"],
        "balance_sheet_difference": bs["difference"],
    }
    logger.info("Ledger integrity check %s", result)
    return result


@shared_task
def rebuild_period_snapshot(period):
    """Recompute a closed period's snapshot rows from the journal."""
    from .models import PeriodStatus
    from .services.periods import build_snapshot

    with transaction.atomic():
        status = PeriodStatus.objects.select_for_update().filter(period=period).first()
        if status is None or not status.is_closed:
            logger.warning("Snapshot rebuild skipped: period %s is not closed", period)
            return 0
        rows = build_snapshot(period)
    logger.info("Rebuilt %d snapshot rows for %s", len(rows), period)
    return len(rows)
