from decimal import Decimal

from django.test import SimpleTestCase, override_settings

from ..exceptions import TaxRuleError
from ..models import Client, Vendor
from ..services import tax

FP = "010.000-25.12345678"


class TaxRuleTests(SimpleTestCase):
    def setUp(self):
        # unsaved instances: the evaluator never touches the database
        self.pkp = Vendor(name="PKP", npwp="01.234", provides_faktur_pajak=True)
        self.non_pkp = Vendor(name="Non PKP", npwp="01.999")
        self.pph_vendor = Vendor(name="Jasa", npwp="01.111",
                                 subject_to_pph23=True, pph23_rate=Decimal("0.02"))
        self.client_wh = Client(name="Client", npwp="02.222", withholds_pph23=True,
                                pph23_rate=Decimal("0.02"))

    def test_bill_vat_needs_pkp_vendor_and_faktur_number(self):
        result = tax.evaluate(tax.BILL, self.pkp, 10_000_000, faktur_pajak_number=FP)
        self.assertTrue(result.vat_applicable)
        self.assertEqual(result.vat_rate, Decimal("0.11"))
        self.assertEqual(result.vat_amount, 1_100_000)

        # No Faktur Pajak: VAT is never inferred
        result = tax.evaluate(tax.BILL, self.pkp, 10_000_000)
        self.assertFalse(result.vat_applicable)
        self.assertEqual(result.vat_amount, 0)

        # Non-PKP vendor with a number: still no input VAT
        result = tax.evaluate(tax.BILL, self.non_pkp, 10_000_000, faktur_pajak_number=FP)
        self.assertEqual(result.vat_amount, 0)

    def test_bill_with_malformed_faktur_number_raises(self):
        with self.assertRaises(TaxRuleError) as ctx:
            tax.evaluate(tax.BILL, self.pkp, 1_000_000, faktur_pajak_number="12345")
        self.assertEqual(ctx.exception.field, "faktur_pajak_number")

    def test_invoice_always_charges_vat(self):
        result = tax.evaluate(tax.INVOICE, Client(name="x"), 5_000_000)
        self.assertTrue(result.vat_applicable)
        self.assertEqual(result.vat_amount, 550_000)

    def test_payment_withholding_on_subtotal(self):
        result = tax.evaluate(tax.PAYMENT, self.pph_vendor, 10_000_000)
        self.assertTrue(result.withholding_applicable)
        self.assertEqual(result.withholding_amount, 200_000)
        self.assertEqual(result.vat_amount, 0)

    def test_payment_without_pph23_flag_withholds_nothing(self):
        result = tax.evaluate(tax.PAYMENT, self.pkp, 10_000_000)
        self.assertFalse(result.withholding_applicable)
        self.assertEqual(result.withholding_amount, 0)

    def test_withholding_without_npwp_raises(self):
        vendor = Vendor(name="No NPWP", subject_to_pph23=True)
        with self.assertRaises(TaxRuleError) as ctx:
            tax.evaluate(tax.PAYMENT, vendor, 1_000_000)
        self.assertEqual(ctx.exception.field, "npwp")

    def test_zero_rate_falls_back_to_default(self):
        vendor = Vendor(name="Zero", npwp="1", subject_to_pph23=True,
                        pph23_rate=Decimal("0"))
        self.assertEqual(
            tax.evaluate(tax.PAYMENT, vendor, 1_000_000).withholding_amount, 20_000)

    def test_receipt_withholding_by_client(self):
        result = tax.evaluate(tax.RECEIPT, self.client_wh, 5_000_000)
        self.assertEqual(result.withholding_amount, 100_000)

    def test_round_half_up_once(self):
        self.assertEqual(tax.round_idr(Decimal("0.5")), 1)
        self.assertEqual(tax.round_idr(Decimal("1.49")), 1)
        self.assertEqual(tax.round_idr(Decimal("2.5")), 3)
        # 4,545 * 11% = 499.95 -> 500
        self.assertEqual(tax.evaluate(tax.INVOICE, Client(name="x"), 4_545).vat_amount, 500)
        # 25 * 2% = 0.5 -> 1
        self.assertEqual(
            tax.evaluate(tax.PAYMENT, self.pph_vendor, 25).withholding_amount, 1)

    def test_faktur_format(self):
        self.assertTrue(tax.is_valid_faktur_pajak(FP))
        self.assertFalse(tax.is_valid_faktur_pajak("010.000-25.1234567"))
        self.assertFalse(tax.is_valid_faktur_pajak(""))
        with self.assertRaises(TaxRuleError):
            tax.validate_faktur_pajak("not-a-number")

    def test_unknown_doc_type(self):
        with self.assertRaises(ValueError):
            tax.evaluate("QUOTE", self.pkp, 100)

    @override_settings(LEDGER_VAT_RATE="0.12")
    def test_vat_rate_from_settings(self):
        self.assertEqual(
            tax.evaluate(tax.INVOICE, Client(name="x"), 1_000_000).vat_amount, 120_000)
