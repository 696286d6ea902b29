"""
Indonesian tax rules for ledger documents.

Pure functions: nothing here touches the database.

    BILL     PPN Masukan 11% only for a PKP vendor with a Faktur Pajak number
    INVOICE  PPN Keluaran 11% always
    PAYMENT  PPh 23 withheld by us, on the bill subtotal (before VAT)
    RECEIPT  PPh 23 withheld by the client, on the invoice subtotal

Tax figures are rounded once, half-up, to whole rupiah.
"""
import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from .. import conf
from ..exceptions import TaxRuleError

BILL = "BILL"
INVOICE = "INVOICE"
PAYMENT = "PAYMENT"
RECEIPT = "RECEIPT"
DOC_TYPES = (BILL, INVOICE, PAYMENT, RECEIPT)

# 010.000-24.12345678
FAKTUR_PAJAK_RE = re.compile(r"^\d{3}\.\d{3}-\d{2}\.\d{8}$")

ZERO = Decimal("0")


@dataclass(frozen=True)
class TaxEvaluation:
    vat_rate: Decimal = ZERO
    vat_applicable: bool = False
    vat_amount: int = 0
    withholding_rate: Decimal = ZERO
    withholding_applicable: bool = False
    withholding_amount: int = 0


def round_idr(value) -> int:
    """Round half-up to a whole rupiah."""
    return int(Decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def is_valid_faktur_pajak(number) -> bool:
    return bool(number) and bool(FAKTUR_PAJAK_RE.match(number.strip()))


def validate_faktur_pajak(number):
    """Raise TaxRuleError unless number is a well-formed Faktur Pajak number."""
    if not is_valid_faktur_pajak(number):
        raise TaxRuleError(
            f"Invalid Faktur Pajak number {number!r}; "
            "expected format 000.000-00.00000000",
            field="faktur_pajak_number",
        )


def _require_npwp(counterparty):
    if not counterparty.has_npwp:
        raise TaxRuleError(
            f"PPh 23 withholding requires an NPWP for {counterparty}",
            field="npwp",
        )


def _withholding_rate(counterparty):
    rate = getattr(counterparty, "pph23_rate", None)
    if rate is None or Decimal(rate) == ZERO:
        return conf.default_pph23_rate()
    return Decimal(rate)


def evaluate(doc_type, counterparty, subtotal, faktur_pajak_number=None):
    """
    Map a document type, counterparty tax flags and a subtotal (whole rupiah,
    before VAT) to the taxes that apply.
    """
    if doc_type not in DOC_TYPES:
        raise ValueError(f"Unknown document type {doc_type!r}")
    subtotal = Decimal(subtotal)

    if doc_type == BILL:
        fp = (faktur_pajak_number or "").strip()
        if not fp:
            # no Faktur Pajak → no input VAT; never inferred
            return TaxEvaluation()
        validate_faktur_pajak(fp)
        if not getattr(counterparty, "provides_faktur_pajak", False):
            return TaxEvaluation()
        rate = conf.vat_rate()
        return TaxEvaluation(
            vat_rate=rate, vat_applicable=True,
            vat_amount=round_idr(subtotal * rate),
        )

    if doc_type == INVOICE:
        rate = conf.vat_rate()
        return TaxEvaluation(
            vat_rate=rate, vat_applicable=True,
            vat_amount=round_idr(subtotal * rate),
        )

    if doc_type == PAYMENT:
        flagged = getattr(counterparty, "subject_to_pph23", False)
    else:
        flagged = getattr(counterparty, "withholds_pph23", False)
    if not flagged:
        return TaxEvaluation()

    _require_npwp(counterparty)
    rate = _withholding_rate(counterparty)
    return TaxEvaluation(
        withholding_rate=rate, withholding_applicable=True,
        withholding_amount=round_idr(subtotal * rate),
    )
