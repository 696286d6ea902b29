import datetime
from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.test import TestCase

from ..models import Client, Project, Vendor

JAN = datetime.date(2025, 1, 10)


class LedgerTestCase(TestCase):
    """Seeded chart of accounts plus one vendor, client and project of each kind."""

    def setUp(self):
        call_command("seed_chart_of_accounts", stdout=StringIO())
        # PKP vendor, PPh 23 applies
        self.vendor = Vendor.objects.create(
            name="PT Studio Kreatif",
            npwp="01.234.567.8-901.000",
            provides_faktur_pajak=True,
            subject_to_pph23=True,
            pph23_rate=Decimal("0.02"),
        )
        # non-PKP vendor, no withholding
        self.plain_vendor = Vendor.objects.create(name="Toko ATK Sejahtera")
        self.customer = Client.objects.create(
            name="PT Klien Utama", npwp="02.345.678.9-012.000")
        self.project = Project.objects.create(
            code="PRJ-001", name="Video Campaign", client=self.customer)

    # Helpers
    def bill_lines(self, amount=10_000_000, account="6-60100", project_code=None):
        return [{
            "description": "Jasa produksi",
            "quantity": 1,
            "unit_price": amount,
            "expense_account_code": account,
            "project_code": project_code,
        }]

    def invoice_lines(self, amount=5_000_000):
        return [{
            "description": "Jasa kreatif",
            "quantity": 1,
            "unit_price": amount,
            "revenue_account_code": "4-40100",
        }]

    def line_map(self, journal):
        """{account_code: (debit, credit)} summed over a journal's lines."""
        result = {}
        for line in journal.lines.all():
            d, c = result.get(line.account_id, (0, 0))
            result[line.account_id] = (d + line.debit, c + line.credit)
        return result
