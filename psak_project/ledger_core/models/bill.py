from decimal import ROUND_HALF_UP, Decimal
from django.core.exceptions import ValidationError
from django.db import models
from .account import Account
from .counterparty import Vendor
from .document import TaxedDocument

BILL_STATUS_CHOICES = [
    ("draft", "Draft"),
    ("approved", "Approved"),
    ("partial", "Partially paid"),
    ("paid", "Paid"),
    ("cancelled", "Cancelled"),
]

BILL_CATEGORIES = [
    ("COGS", "Cost of goods sold (project)"),
    ("OPEX", "Operating expense"),
]


# ---------- Vendor bill (Accounts Payable document) ----------
class Bill(TaxedDocument):
    doc_type = "vendor_bill"
    transitions = {
        "draft": ["approved", "cancelled"],
        "approved": ["partial", "paid", "cancelled"],
        "partial": ["approved", "paid", "cancelled"],
        "paid": ["partial", "approved"],  # a voided payment reopens the bill
        "cancelled": [],
    }

    vendor = models.ForeignKey(
        Vendor, on_delete=models.PROTECT, related_name="bills")
    # The vendor's own reference (their invoice number)
    vendor_invoice_number = models.CharField(
        max_length=64, null=True, blank=True)
    category = models.CharField(max_length=4, choices=BILL_CATEGORIES)
    # 010.000-24.12345678
    faktur_pajak_number = models.CharField(
        max_length=20, null=True, blank=True)
    status = models.CharField(
        max_length=10, choices=BILL_STATUS_CHOICES, default="draft")

    class Meta(TaxedDocument.Meta):
        indexes = [
            models.Index(fields=["vendor", "date"], name="idx_bill_vendor_date"),
            models.Index(fields=["status"], name="idx_bill_status"),
        ]


class BillLine(models.Model):  # Items/services on the bill
    bill = models.ForeignKey(
        Bill, on_delete=models.CASCADE, related_name="lines")
    description = models.TextField(blank=True, default="")
    # quantity × unit_price = amount (whole rupiah)
    quantity = models.DecimalField(
        max_digits=14, decimal_places=4, default=Decimal("1"))
    unit_price = models.BigIntegerField(default=0)
    amount = models.BigIntegerField(default=0)
    expense_account = models.ForeignKey(
        Account, to_field="code", db_column="expense_account_code",
        on_delete=models.PROTECT, related_name="+",
    )
    project_code = models.CharField(max_length=32, null=True, blank=True)
    sort_order = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ("bill", "sort_order", "pk")
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=0) &
                models.Q(unit_price__gte=0),
                name="bl_non_negative_amounts",
            ),
        ]

    def __str__(self):
        return f"{self.bill_id} | {self.expense_account_id} | {self.amount}"

    @staticmethod
    def line_amount(quantity, unit_price):
        return int((Decimal(str(quantity)) * Decimal(unit_price)).quantize(
            Decimal("1"), rounding=ROUND_HALF_UP))

    def clean(self):
        if self.quantity <= 0:
            raise ValidationError({"quantity": "Quantity must be > 0"})
        if self.unit_price < 0:
            raise ValidationError({"unit_price": "Unit price must be >= 0"})

    def save(self, *args, **kwargs):
        # line amount is always recomputed, regardless of input
        self.amount = self.line_amount(self.quantity, self.unit_price)
        self.full_clean()
        return super().save(*args, **kwargs)
