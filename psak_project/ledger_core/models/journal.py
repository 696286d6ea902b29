from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import JournalLineManager, JournalManager
from .account import Account

JOURNAL_STATUS = [
    ("draft", "Draft"),  # still editable, not in the ledger
    ("posted", "Posted"),  # finalized
    ("reversed", "Reversed"),  # posted, then mirrored by a reversal journal
]

# Header fields frozen once a journal leaves draft
FROZEN_FIELDS = ("number", "date", "period", "description",
                 "source_doc_type", "source_doc_id", "reversal_of_id")


def period_of(date):
    """Accounting period label (YYYY-MM) for a date."""
    return f"{date.year:04d}-{date.month:02d}"


# ---------- Journal (Header) & JournalLine ----------
class Journal(models.Model):  # One accounting transaction
    # JRN-YYYY-NNNN, allocated by the journal store when posted
    number = models.CharField(max_length=20, unique=True, null=True, blank=True)
    date = models.DateField()
    # Always derived from date in save(), never edited on its own
    period = models.CharField(max_length=7, editable=False, db_index=True)
    description = models.TextField(blank=True, default="")
    status = models.CharField(
        max_length=10, choices=JOURNAL_STATUS, default="draft")

    # Back-reference to the business document that produced this journal
    source_doc_type = models.CharField(max_length=50, null=True, blank=True)
    source_doc_id = models.CharField(max_length=64, null=True, blank=True)

    # Set on a reversal journal: the original it mirrors
    reversal_of = models.OneToOneField(
        "self",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="reversal",
    )

    posted_at = models.DateTimeField(null=True, blank=True)
    voided_at = models.DateTimeField(null=True, blank=True)
    void_reason = models.TextField(null=True, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL
    )
    created_at = models.DateTimeField(auto_now_add=True)

    objects = JournalManager()

    class Meta:
        # posting order within a day
        ordering = ("date", "posted_at", "pk")
        indexes = [
            models.Index(fields=["date", "number"], name="idx_journal_date_number"),
            models.Index(fields=["status"], name="idx_journal_status"),
            models.Index(fields=["source_doc_type", "source_doc_id"],
                         name="idx_journal_source"),
        ]
        permissions = [
            ("reopen_period", "Can reopen a closed accounting period"),
        ]

    def __str__(self):
        return f"{self.number or f'draft #{self.pk}'} {self.date} [{self.status}]"

    @property
    def kind(self):
        """Tagged ledger variant: "reversal", "voided" or "posted" (or "draft")."""
        if self.status == "draft":
            return "draft"
        if self.reversal_of_id:
            return "reversal"
        if self.status == "reversed":
            return "voided"
        return "posted"

    # Aggregate all debit and credit amounts across entry's lines
    def compute_totals(self):
        aggs = self.lines.aggregate(
            total_debit=models.Sum("debit"),
            total_credit=models.Sum("credit"),
        )
        return aggs["total_debit"] or 0, aggs["total_credit"] or 0

    def is_balanced(self):
        debit, credit = self.compute_totals()
        return debit == credit

    def save(self, *args, **kwargs):
        self.period = period_of(self.date)
        if self.pk:
            orig = Journal.objects.filter(pk=self.pk).first()
            if orig and orig.status != "draft":
                # Ledger is append-only: only the void markers may change
                if self.status not in ("posted", "reversed") or (
                    orig.status == "reversed" and self.status != "reversed"
                ):
                    raise ValidationError(
                        f"Cannot go from {orig.status} to {self.status}")
                for f in FROZEN_FIELDS:
                    if getattr(orig, f) != getattr(self, f):
                        raise ValidationError(
                            "Cannot modify a posted journal. It is immutable."
                        )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if self.status != "draft":
            raise ValidationError(
                "Posted journals cannot be deleted; void them instead.")
        return super().delete(*args, **kwargs)


class JournalLine(models.Model):  # Stores lines (debits / credits)
    journal = models.ForeignKey(
        Journal, on_delete=models.CASCADE, related_name="lines")
    # Points at Account.code; can't delete an account once used
    account = models.ForeignKey(
        Account,
        to_field="code",
        db_column="account_code",
        on_delete=models.PROTECT,
        related_name="lines",
    )
    description = models.CharField(max_length=400, blank=True, default="")
    # Whole rupiah, exactly one side non-zero
    debit = models.BigIntegerField(default=0)
    credit = models.BigIntegerField(default=0)
    # Required on COGS accounts
    project_code = models.CharField(max_length=32, null=True, blank=True)
    # Deterministic rendering order inside a journal
    sort_order = models.PositiveIntegerField(default=0)

    objects = JournalLineManager()

    class Meta:
        ordering = ("journal", "sort_order", "pk")
        indexes = [
            models.Index(fields=["account", "journal"], name="idx_jline_account_journal"),
            models.Index(fields=["project_code"], name="idx_jline_project"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(debit__gte=0) & models.Q(credit__gte=0),
                name="jl_non_negative_amounts",
            ),
            models.CheckConstraint(
                condition=(
                    (models.Q(debit__gt=0) & models.Q(credit=0))
                    | (models.Q(debit=0) & models.Q(credit__gt=0))
                ),
                name="jl_debit_xor_credit",
            ),
        ]

    def __str__(self):
        return (f"{self.journal_id} | {self.account_id} | "
                f"D:{self.debit} C:{self.credit}")

    @property
    def account_code(self):
        return self.account_id

    def clean(self):
        if self.debit < 0 or self.credit < 0:
            raise ValidationError("Debit and credit must be >= 0")
        if (self.debit > 0) == (self.credit > 0):
            raise ValidationError(
                "JournalLine needs exactly one non-zero side")

    def save(self, *args, **kwargs):
        if self.journal_id and Journal.objects.filter(
            pk=self.journal_id).exclude(status="draft").exists():
            raise ValidationError(
                "Cannot add or modify lines of a posted journal.")
        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if self.journal_id and Journal.objects.filter(
            pk=self.journal_id).exclude(status="draft").exists():
            raise ValidationError(
                "Cannot delete JournalLine: parent journal is posted.")
        return super().delete(*args, **kwargs)
