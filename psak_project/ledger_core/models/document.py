from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models


class LedgerDocument(models.Model):
    """
    Business document that owns exactly one journal.

    Amounts owed are never stored here: outstanding balances are derived
    from the ledger (services.reports). Status is a projection of that.
    """

    # source_doc_type written on the journal this document produces
    doc_type = None
    # {current status: [allowed next statuses]}
    transitions = {}

    number = models.CharField(max_length=20, unique=True)
    date = models.DateField()
    description = models.TextField(blank=True, default="")
    journal = models.OneToOneField(
        "Journal", null=True, blank=True, on_delete=models.PROTECT,
        related_name="+",
    )
    # Void markers; the reversal journal holds the mirrored lines
    voided_at = models.DateTimeField(null=True, blank=True)
    void_reason = models.TextField(null=True, blank=True)
    reversal_journal = models.OneToOneField(
        "Journal", null=True, blank=True, on_delete=models.PROTECT,
        related_name="+",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        abstract = True
        ordering = ("date", "number")

    def __str__(self):
        return self.number

    @property
    def is_voided(self):
        return self.voided_at is not None

    def transition_to(self, new_status):
        # Look up what states are allowed from current self.status
        if new_status == self.status:
            return
        if new_status not in self.transitions.get(self.status, []):
            raise ValidationError(
                f"Cannot go from {self.status} to {new_status}")
        self.status = new_status
        self.save(update_fields=["status"])


class TaxedDocument(LedgerDocument):
    """Bill/Invoice header: lines, VAT and a due date."""

    due_date = models.DateField()
    subtotal = models.BigIntegerField(default=0)
    vat_amount = models.BigIntegerField(default=0)
    total = models.BigIntegerField(default=0)
    project = models.ForeignKey(
        "Project", null=True, blank=True, on_delete=models.PROTECT,
        related_name="+",
    )

    class Meta(LedgerDocument.Meta):
        abstract = True

    def clean(self):
        if self.due_date and self.date and self.due_date < self.date:
            raise ValidationError({"due_date": "Due date is before the document date"})
        if self.total != self.subtotal + self.vat_amount:
            raise ValidationError({"total": "Total must equal subtotal + VAT"})


class SettlementDocument(LedgerDocument):
    """Payment/Receipt: cash moving against one bill or invoice."""

    amount = models.BigIntegerField()
    pph23_withheld = models.BigIntegerField(default=0)
    bank_account_code = models.CharField(max_length=7)

    class Meta(LedgerDocument.Meta):
        abstract = True
