from django.core.management.base import BaseCommand
from django.db import transaction

from ledger_core.models import Account

# (code, name, ac_type, parent_code)
DEFAULT_CHART = [
    ("1-10000", "Aset Lancar", "ASSET", None),
    ("1-10100", "Kas", "ASSET", "1-10000"),
    ("1-10200", "Bank", "ASSET", "1-10000"),
    ("1-11000", "Piutang Usaha", "ASSET", "1-10000"),
    ("1-14000", "PPN Masukan", "ASSET", "1-10000"),
    ("1-14500", "PPh 23 Dibayar Dimuka", "ASSET", "1-10000"),
    ("1-15000", "Biaya Dibayar Dimuka", "ASSET", "1-10000"),
    ("2-20000", "Liabilitas Jangka Pendek", "LIABILITY", None),
    ("2-20100", "Utang Usaha", "LIABILITY", "2-20000"),
    ("2-22000", "PPN Keluaran", "LIABILITY", "2-20000"),
    ("2-23100", "Utang PPh 23", "LIABILITY", "2-20000"),
    ("3-30100", "Modal Disetor", "EQUITY", None),
    ("3-30200", "Laba Ditahan", "EQUITY", None),
    ("4-40100", "Pendapatan Jasa", "REVENUE", None),
    ("5-50100", "Biaya Produksi Proyek", "COGS", None),
    ("6-60100", "Beban Operasional Umum", "OPEX", None),
    ("6-60200", "Beban Sewa", "OPEX", None),
    ("7-70100", "Pendapatan Bunga", "OTHER_INCOME", None),
    ("8-80100", "Beban Administrasi Bank", "OTHER_EXPENSE", None),
    ("9-90100", "Beban Pajak Penghasilan", "TAX_EXPENSE", None),
]


class Command(BaseCommand):
    help = "Creates the default Indonesian (PSAK) chart of accounts. Safe to re-run."

    def handle(self, *args, **options):
        created = 0
        with transaction.atomic():
            for code, name, ac_type, parent_code in DEFAULT_CHART:
                _, was_created = Account.objects.get_or_create(
                    code=code,
                    defaults={"name": name, "ac_type": ac_type,
                              "parent_code": parent_code},
                )
                created += was_created
        self.stdout.write(self.style.SUCCESS(
            f"Chart of accounts ready ({created} created, "
            f"{len(DEFAULT_CHART) - created} already present)"))
