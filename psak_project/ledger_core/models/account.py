from django.core.exceptions import ValidationError
from django.core.validators import RegexValidator
from django.db import models
from ..managers import ActiveManager

# Choice Lists
AC_TYPES = [
    # Used in Account model to classify general ledger accounts
    ("ASSET", "Aset"),
    ("LIABILITY", "Liabilitas"),
    ("EQUITY", "Ekuitas"),
    ("REVENUE", "Pendapatan"),
    ("COGS", "Harga Pokok Penjualan"),
    ("OPEX", "Beban Operasional"),
    ("OTHER_INCOME", "Pendapatan Lain-lain"),
    ("OTHER_EXPENSE", "Beban Lain-lain"),
    ("TAX_EXPENSE", "Beban Pajak"),
]

# Accounts that normally increase on the debit side;
# everything else is credit-normal
DEBIT_NORMAL_TYPES = frozenset(
    {"ASSET", "COGS", "OPEX", "OTHER_EXPENSE", "TAX_EXPENSE"})

# Balance sheet vs P&L grouping
BALANCE_SHEET_TYPES = frozenset({"ASSET", "LIABILITY", "EQUITY"})
PROFIT_LOSS_TYPES = frozenset(
    {"REVENUE", "COGS", "OPEX", "OTHER_INCOME", "OTHER_EXPENSE", "TAX_EXPENSE"})

account_code_validator = RegexValidator(
    regex=r"^\d-\d{5}$",
    message="Account code must look like <type-digit>-<5 digits>, e.g. 1-10100",
)


def is_debit_normal(ac_type):
    return ac_type in DEBIT_NORMAL_TYPES


def signed_balance(ac_type, debit, credit):
    """Balance in the account's normal direction."""
    if is_debit_normal(ac_type):
        return debit - credit
    return credit - debit


class Account(models.Model):
    """
    Chart of Accounts entry (PSAK).
    - code is the natural key every journal line points at
    - ac_type drives reporting (balance sheet vs P&L) and the sign convention
    """

    code = models.CharField(
        max_length=7, unique=True, validators=[account_code_validator]
    )
    name = models.CharField(max_length=200)  # "Kas", "Utang Usaha", ...
    ac_type = models.CharField(max_length=20, choices=AC_TYPES)
    # Optional hierarchy for grouping in reports
    parent_code = models.CharField(max_length=7, null=True, blank=True)
    # "soft deactivate": stop new postings without deleting history
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ActiveManager()

    class Meta:
        ordering = ("code",)
        indexes = [models.Index(fields=["ac_type"], name="idx_account_type")]

    def __str__(self):
        return f"{self.code} – {self.name}"

    @property
    def normal_side(self):
        return "debit" if is_debit_normal(self.ac_type) else "credit"

    def is_referenced(self):
        return self.pk is not None and self.lines.exists()

    def clean(self):
        if self.parent_code and self.parent_code == self.code:
            raise ValidationError(
                {"parent_code": "An account cannot be its own parent"})

    def save(self, *args, **kwargs):
        """Once a posted line references the account its code and type are frozen."""
        if self.pk:
            old = Account.objects.filter(pk=self.pk).first()
            if old and old.is_referenced():
                if old.code != self.code or old.ac_type != self.ac_type:
                    raise ValidationError(
                        "Cannot change code or type of an account "
                        "used in journal lines."
                    )
        self.full_clean()
        return super().save(*args, **kwargs)
