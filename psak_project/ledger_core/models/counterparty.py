from decimal import Decimal
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from ..managers import ActiveManager

rate_validators = [MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("1"))]


class Counterparty(models.Model):
    """Fields shared by vendors and clients (tax identity and terms)."""

    name = models.CharField(max_length=200, unique=True)
    # Nomor Pokok Wajib Pajak; required whenever PPh 23 is withheld
    npwp = models.CharField(max_length=32, blank=True, default="")
    email = models.EmailField(null=True, blank=True)
    address = models.TextField(blank=True, default="")
    # Due date = document date + payment_terms days;
    # empty means LEDGER_DEFAULT_PAYMENT_TERMS
    payment_terms = models.PositiveIntegerField(null=True, blank=True)
    pph23_rate = models.DecimalField(
        max_digits=5, decimal_places=4, default=Decimal("0.02"),
        validators=rate_validators,
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = ActiveManager()

    class Meta:
        abstract = True
        ordering = ("name",)

    def __str__(self):
        return self.name

    @property
    def has_npwp(self):
        return bool((self.npwp or "").strip())

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)


class Vendor(Counterparty):  # Accounts Payable side
    # PKP vendor issuing Faktur Pajak → input VAT claimable
    provides_faktur_pajak = models.BooleanField(default=False)
    # We withhold PPh 23 when paying this vendor
    subject_to_pph23 = models.BooleanField(default=False)

    def clean(self):
        if self.subject_to_pph23 and not self.pph23_rate:
            raise ValidationError(
                {"pph23_rate": "PPh 23 vendors need a withholding rate"})


class Client(Counterparty):  # Accounts Receivable side
    # The client withholds PPh 23 when paying us
    withholds_pph23 = models.BooleanField(default=False)


class Project(models.Model):
    """Cost object every COGS posting must be charged to."""

    code = models.CharField(max_length=32, unique=True)
    name = models.CharField(max_length=200)
    client = models.ForeignKey(
        Client, null=True, blank=True, on_delete=models.PROTECT,
        related_name="projects",
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = ActiveManager()

    class Meta:
        ordering = ("code",)

    def __str__(self):
        return f"{self.code} – {self.name}"
