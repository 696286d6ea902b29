""" Ledger settings with their defaults.

Every value can be overridden from Django settings with the same name.
"""
from decimal import Decimal
from django.conf import settings

# Default Indonesian chart of accounts codes used by the translators
DEFAULT_CONTROL_ACCOUNTS = {
    "cash": "1-10100",            # Kas
    "bank": "1-10200",            # Bank
    "receivable": "1-11000",      # Piutang Usaha
    "vat_in": "1-14000",          # PPN Masukan
    "pph23_prepaid": "1-14500",   # PPh 23 dipotong oleh klien
    "payable": "2-20100",         # Utang Usaha
    "vat_out": "2-22000",         # PPN Keluaran
    "pph23_payable": "2-23100",   # Utang PPh 23
}


def vat_rate() -> Decimal:
    return Decimal(str(getattr(settings, "LEDGER_VAT_RATE", "0.11")))


def default_pph23_rate() -> Decimal:
    return Decimal(str(getattr(settings, "LEDGER_DEFAULT_PPH23_RATE", "0.02")))


def default_payment_terms() -> int:
    return int(getattr(settings, "LEDGER_DEFAULT_PAYMENT_TERMS", 30))


def control_account(key: str) -> str:
    """Return the account code configured for a control role (e.g. "payable")."""
    overrides = getattr(settings, "LEDGER_CONTROL_ACCOUNTS", None) or {}
    try:
        return overrides.get(key) or DEFAULT_CONTROL_ACCOUNTS[key]
    except KeyError:
        raise KeyError(f"Unknown ledger control account role: {key}") from None
