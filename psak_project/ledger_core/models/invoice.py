from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db import models
from .account import Account
from .bill import BillLine
from .counterparty import Client
from .document import TaxedDocument

INVOICE_STATUS = [
    ("draft", "Draft"),
    ("sent", "Sent"),
    ("partial", "Partially paid"),
    ("paid", "Paid"),
    ("cancelled", "Cancelled"),
]


# ---------- Sales invoice (Accounts Receivable document) ----------
class Invoice(TaxedDocument):
    doc_type = "sales_invoice"
    transitions = {
        "draft": ["sent", "cancelled"],
        "sent": ["partial", "paid", "cancelled"],
        "partial": ["sent", "paid", "cancelled"],
        "paid": ["partial", "sent"],
        "cancelled": [],
    }

    client = models.ForeignKey(
        Client, on_delete=models.PROTECT, related_name="invoices")
    status = models.CharField(
        max_length=10, choices=INVOICE_STATUS, default="draft")

    class Meta(TaxedDocument.Meta):
        indexes = [
            models.Index(fields=["client", "date"], name="idx_invoice_client_date"),
            models.Index(fields=["status"], name="idx_invoice_status"),
        ]


class InvoiceLine(models.Model):
    invoice = models.ForeignKey(
        Invoice, on_delete=models.CASCADE, related_name="lines")
    description = models.TextField(blank=True, default="")
    quantity = models.DecimalField(
        max_digits=14, decimal_places=4, default=Decimal("1"))
    unit_price = models.BigIntegerField(default=0)
    amount = models.BigIntegerField(default=0)
    revenue_account = models.ForeignKey(
        Account, to_field="code", db_column="revenue_account_code",
        on_delete=models.PROTECT, related_name="+",
    )
    sort_order = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ("invoice", "sort_order", "pk")
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=0) &
                models.Q(unit_price__gte=0),
                name="il_non_negative_amounts",
            ),
        ]

    def __str__(self):
        return f"{self.invoice_id} | {self.revenue_account_id} | {self.amount}"

    def clean(self):
        if self.quantity <= 0:
            raise ValidationError({"quantity": "Quantity must be > 0"})
        if self.unit_price < 0:
            raise ValidationError({"unit_price": "Unit price must be >= 0"})

    def save(self, *args, **kwargs):
        self.amount = BillLine.line_amount(self.quantity, self.unit_price)
        self.full_clean()
        return super().save(*args, **kwargs)
