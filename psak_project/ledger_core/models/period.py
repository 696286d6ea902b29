from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import RegexValidator
from django.db import models

PERIOD_STATES = [
    ("OPEN", "Open"),
    ("CLOSED", "Closed"),
]

period_validator = RegexValidator(
    regex=r"^\d{4}-(0[1-9]|1[0-2])$",
    message="Period must be formatted YYYY-MM",
)


# ---------- Period lock (monthly close) ----------
class PeriodStatus(models.Model):
    """
    One row per accounting period that has been written to or closed.
    A period with no row is OPEN. Writers and close_period() lock this row.

    When status=CLOSED:
        No postings, voids or line edits dated inside the period.
    """

    period = models.CharField(
        max_length=7, unique=True, validators=[period_validator])
    status = models.CharField(
        max_length=6, choices=PERIOD_STATES, default="OPEN")
    closed_at = models.DateTimeField(null=True, blank=True)
    closed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL,
        related_name="+",
    )
    # The audit run that cleared the close
    audit = models.ForeignKey(
        "PeriodAudit", null=True, blank=True, on_delete=models.PROTECT,
        related_name="+",
    )
    # Reopening is a separate, privileged and logged operation
    reopened_at = models.DateTimeField(null=True, blank=True)
    reopened_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL,
        related_name="+",
    )
    reopen_reason = models.TextField(null=True, blank=True)

    class Meta:
        ordering = ("period",)
        verbose_name_plural = "period statuses"

    def __str__(self):
        return f"{self.period} [{self.status}]"

    @property
    def is_closed(self):
        return self.status == "CLOSED"

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)


# ---------- Point-in-time balances captured on close ----------
class PeriodSnapshot(models.Model):
    period = models.CharField(max_length=7, validators=[period_validator])
    # Last day of the period; the as-of date the balances hold for
    snapshot_date = models.DateField()
    account = models.ForeignKey(
        "Account", to_field="code", db_column="account_code",
        on_delete=models.PROTECT, related_name="snapshots",
    )
    # Cumulative totals from the beginning of the ledger to snapshot_date
    debit_total = models.BigIntegerField(default=0)
    credit_total = models.BigIntegerField(default=0)
    # Signed in the account's normal direction
    balance = models.BigIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("period", "account")
        indexes = [models.Index(fields=["snapshot_date"], name="idx_snapshot_date")]
        constraints = [
            models.UniqueConstraint(
                fields=["period", "account"],
                name="uq_period_snapshot_account",
            ),
            models.CheckConstraint(
                condition=(
                    models.Q(debit_total__gte=0) &
                    models.Q(credit_total__gte=0)
                ),
                name="ps_non_negative_totals",
            ),
        ]

    def __str__(self):
        return (f"{self.period} | {self.account_id}: "
                f"D {self.debit_total} / C {self.credit_total}")


AUDIT_STATUS = [
    ("RUNNING", "Running"),
    ("COMPLETED", "Completed"),
]

SEVERITIES = ("CRITICAL", "HIGH", "MEDIUM", "LOW")


# ---------- Pre-close audit ----------
class PeriodAudit(models.Model):
    """Result of the checks a period must pass before it can be closed."""

    period = models.CharField(max_length=7, validators=[period_validator])
    audit_type = models.CharField(max_length=20, default="PERIOD_CLOSE")
    status = models.CharField(
        max_length=10, choices=AUDIT_STATUS, default="RUNNING")
    # [{issue_type, severity, message, action_required,
    #   related_entity_type, related_entity_id}, ...]
    issues = models.JSONField(default=list, blank=True)
    summary = models.TextField(blank=True, default="")
    metrics = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ("-created_at",)
        indexes = [models.Index(fields=["period", "status"], name="idx_period_audit_status")]

    def __str__(self):
        return f"Audit {self.pk} {self.period} [{self.status}]"

    def issues_with(self, severity):
        return [i for i in self.issues or [] if i.get("severity") == severity]

    @property
    def critical_issues(self):
        return self.issues_with("CRITICAL")

    def clean(self):
        for issue in self.issues or []:
            if issue.get("severity") not in SEVERITIES:
                raise ValidationError(
                    {"issues": f"Unknown severity {issue.get('severity')!r}"})
