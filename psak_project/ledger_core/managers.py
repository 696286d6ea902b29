from django.db import models
from django.db.models import Q


# -----------------------------------------
# Query helpers shared by reports & services
# -----------------------------------------
class JournalQuerySet(models.QuerySet):
    # Only journals that affect balances (posted originals, reversed
    # originals and their mirrors all stay in the ledger)
    def in_ledger(self):
        return self.exclude(status="draft")

    def as_of(self, as_of):
        return self.filter(date__lte=as_of)

    def in_period(self, period):
        return self.filter(period=period)

    def ledger_order(self):
        return self.order_by("date", "posted_at", "pk")


class JournalLineQuerySet(models.QuerySet):
    def in_ledger(self):
        return self.exclude(journal__status="draft")

    def as_of(self, as_of):
        if as_of is None:
            return self
        return self.filter(journal__date__lte=as_of)

    def between(self, start, end):
        return self.filter(journal__date__gte=start, journal__date__lte=end)

    def for_account(self, code):
        return self.filter(account_id=code)

    def for_sources(self, sources):
        """Lines of journals tagged with any (doc_type, [doc_ids]) pair."""
        cond = Q(pk__in=[])
        for doc_type, doc_ids in sources:
            cond |= Q(
                journal__source_doc_type=doc_type,
                journal__source_doc_id__in=[str(i) for i in doc_ids],
            )
        return self.filter(cond)

    # Ordering for running balances: (date, posting order, sort_order)
    def ledger_order(self):
        return self.order_by(
            "journal__date", "journal__posted_at", "journal_id", "sort_order", "pk")

class ActiveQuerySet(models.QuerySet):
    def active(self):
        return self.filter(is_active=True)


# Attach query sets to .objects
JournalManager = models.Manager.from_queryset(JournalQuerySet)
JournalLineManager = models.Manager.from_queryset(JournalLineQuerySet)
ActiveManager = models.Manager.from_queryset(ActiveQuerySet)
