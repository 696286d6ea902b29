import datetime

from django.test import SimpleTestCase

from ..models import Account, DocumentSequence, JournalLine
from ..services import (account_balance, ap_aging, ar_aging, balance_sheet,
                        close_period, create_bill, create_invoice,
                        create_manual_journal, create_receipt, general_ledger,
                        profit_loss, run_period_audit, trial_balance,
                        vat_position)
from ..services.reports import aging_bucket
from ..tasks import check_ledger_integrity, rebuild_period_snapshot
from .base import JAN, LedgerTestCase

FP = "010.000-25.00000011"
JAN_END = datetime.date(2025, 1, 31)


class AgingBucketTests(SimpleTestCase):
    def test_boundaries(self):
        cases = [(-5, "0-30"), (0, "0-30"), (30, "0-30"), (31, "31-60"),
                 (60, "31-60"), (61, "61-90"), (90, "61-90"), (91, "90+")]
        for days, bucket in cases:
            with self.subTest(days=days):
                self.assertEqual(aging_bucket(days), bucket)


class LedgerReportTests(LedgerTestCase):
    """
    January: paid-in capital, one OPEX bill with VAT, one COGS bill,
    one invoice partly received. February: one rent payment.
    """

    def setUp(self):
        super().setUp()
        create_manual_journal(datetime.date(2025, 1, 2), "Setoran modal", [
            {"account_code": "1-10200", "debit": 50_000_000},
            {"account_code": "3-30100", "credit": 50_000_000},
        ])
        self.bill, _ = create_bill(
            JAN, self.vendor, "OPEX", self.bill_lines(10_000_000),
            faktur_pajak_number=FP,
        )
        self.cogs_bill, _ = create_bill(
            datetime.date(2025, 1, 12), self.plain_vendor, "COGS",
            self.bill_lines(2_000_000, account="5-50100"),
            project=self.project, due_date=datetime.date(2025, 3, 31),
        )
        self.invoice, _ = create_invoice(
            JAN, self.customer, self.invoice_lines(5_000_000), project=self.project)
        create_receipt(datetime.date(2025, 1, 15), self.invoice, 3_000_000)
        create_manual_journal(datetime.date(2025, 2, 5), "Sewa Februari", [
            {"account_code": "6-60200", "debit": 500_000},
            {"account_code": "1-10200", "credit": 500_000},
        ])

    def row(self, report, code):
        return next(r for r in report["rows"] if r["code"] == code)

    def test_trial_balance(self):
        tb = trial_balance(JAN_END)
        self.assertTrue(tb["is_balanced"])
        self.assertEqual(tb["source"], "ledger")
        # 50M capital + 11.1M bill + 2M bill + 5.55M invoice + 3M receipt
        self.assertEqual(tb["total_debit"], 71_650_000)
        self.assertEqual(tb["total_debit"], tb["total_credit"])
        self.assertEqual(self.row(tb, "1-10200")["balance"], 53_000_000)
        self.assertEqual(self.row(tb, "2-20100")["balance"], 13_100_000)
        self.assertEqual(self.row(tb, "1-11000")["balance"], 2_550_000)
        # February rent is after as_of
        self.assertEqual(self.row(tb, "6-60200")["debit"], 0)

    def test_inactive_accounts_only_listed_with_activity(self):
        Account.objects.filter(code__in=["8-80100", "6-60200"]).update(is_active=False)
        tb = trial_balance(datetime.date(2025, 2, 28))
        codes = [r["code"] for r in tb["rows"]]
        self.assertNotIn("8-80100", codes)
        self.assertIn("6-60200", codes)

    def test_profit_loss(self):
        pl = profit_loss("2025-01")
        self.assertEqual(pl["revenue"], 5_000_000)
        self.assertEqual(pl["cogs"], 2_000_000)
        self.assertEqual(pl["gross_profit"], 3_000_000)
        self.assertEqual(pl["opex"], 10_000_000)
        self.assertEqual(pl["operating_profit"], -7_000_000)
        self.assertEqual(pl["net_profit"], -7_000_000)
        self.assertEqual(pl["accounts"]["REVENUE"],
                         [{"code": "4-40100", "name": "Pendapatan Jasa",
                           "amount": 5_000_000}])

        two_months = profit_loss("2025-01", "2025-02")
        self.assertEqual(two_months["opex"], 10_500_000)
        self.assertEqual(profit_loss("2025-02")["revenue"], 0)

    def test_balance_sheet_ties(self):
        bs = balance_sheet(JAN_END)
        self.assertTrue(bs["is_balanced"])
        self.assertIsNone(bs["warning"])
        self.assertEqual(bs["total_assets"], 56_650_000)
        self.assertEqual(bs["total_liabilities"], 13_650_000)
        self.assertEqual(bs["current_earnings"], -7_000_000)
        self.assertEqual(bs["total_equity"], 43_000_000)

    def test_general_ledger_running_balance(self):
        gl = general_ledger("1-10200", period="2025-01")
        self.assertEqual(gl["opening_balance"], 0)
        self.assertEqual([r["balance"] for r in gl["rows"]], [50_000_000, 53_000_000])
        self.assertEqual(gl["closing_balance"], 53_000_000)
        self.assertEqual(gl["account"]["normal_side"], "debit")

        feb = general_ledger("1-10200", period="2025-02")
        self.assertEqual(feb["opening_balance"], 53_000_000)
        self.assertEqual(feb["rows"][0]["credit"], 500_000)
        self.assertEqual(feb["closing_balance"], 52_500_000)

    def test_general_ledger_credit_normal_account(self):
        gl = general_ledger("2-20100")
        self.assertEqual([r["balance"] for r in gl["rows"]], [11_100_000, 13_100_000])
        self.assertEqual(gl["rows"][0]["journal_kind"], "posted")

    def test_account_balance(self):
        self.assertEqual(account_balance("1-10200", JAN_END)["balance"], 53_000_000)
        self.assertEqual(account_balance("1-10200")["balance"], 52_500_000)

    def test_ap_aging(self):
        aging = ap_aging(datetime.date(2025, 3, 15))
        self.assertEqual(aging["total"], 13_100_000)
        self.assertEqual(aging["buckets"], {
            "0-30": 2_000_000, "31-60": 11_100_000, "61-90": 0, "90+": 0})
        self.assertEqual(sum(aging["buckets"].values()), aging["total"])
        not_due = next(r for r in aging["rows"] if r["number"] == self.cogs_bill.number)
        self.assertEqual(not_due["days_overdue"], 0)

    def test_ar_aging(self):
        aging = ar_aging(datetime.date(2025, 1, 20))
        self.assertEqual(len(aging["rows"]), 1)
        row = aging["rows"][0]
        self.assertEqual(row["outstanding"], 2_550_000)
        self.assertEqual(row["bucket"], "0-30")
        self.assertEqual(row["counterparty"], "PT Klien Utama")
        # before the receipt the whole invoice was open
        self.assertEqual(ar_aging(datetime.date(2025, 1, 14))["total"], 5_550_000)

    def test_vat_position(self):
        vat = vat_position("2025-01")
        self.assertEqual(vat["vat_output"], 550_000)
        self.assertEqual(vat["vat_input"], 1_100_000)
        self.assertEqual(vat["net_payable"], -550_000)
        self.assertEqual(vat["position"], "refundable")
        self.assertEqual(vat_position("2025-02")["position"], "nil")

    def test_snapshot_used_for_closed_period_end(self):
        before = trial_balance(JAN_END)
        close_period("2025-01", run_period_audit("2025-01").pk)

        after = trial_balance(JAN_END)
        self.assertEqual(after["source"], "snapshot")
        self.assertEqual(after["rows"], before["rows"])
        self.assertEqual(after["total_debit"], before["total_debit"])
        # mid-period dates still come from the journal
        self.assertEqual(trial_balance(datetime.date(2025, 1, 30))["source"], "ledger")

    def test_integrity_problems_are_logged_not_raised(self):
        JournalLine.objects.filter(account_id="3-30100").update(credit=49_000_000)
        with self.assertLogs("ledger_core.integrity", level="CRITICAL"):
            tb = trial_balance(JAN_END)
        self.assertFalse(tb["is_balanced"])
        with self.assertLogs("ledger_core.integrity", level="CRITICAL"):
            bs = balance_sheet(JAN_END)
        self.assertEqual(bs["difference"], 1_000_000)
        self.assertIsNotNone(bs["warning"])


class LedgerTaskTests(LedgerTestCase):
    def setUp(self):
        super().setUp()
        create_manual_journal(JAN, "Setoran modal", [
            {"account_code": "1-10200", "debit": 1_000_000},
            {"account_code": "3-30100", "credit": 1_000_000},
        ])

    def test_integrity_check(self):
        result = check_ledger_integrity("2025-01-31")
        self.assertTrue(result["trial_balance_ok"])
        self.assertTrue(result["balance_sheet_ok"])
        self.assertEqual(result["total_debit"], 1_000_000)

    def test_rebuild_snapshot_only_for_closed_period(self):
        self.assertEqual(rebuild_period_snapshot("2025-01"), 0)
        close_period("2025-01", run_period_audit("2025-01").pk)
        self.assertEqual(rebuild_period_snapshot("2025-01"), Account.objects.count())


class GeneralLedgerOrderTests(LedgerTestCase):
    def test_running_balance_follows_posting_order(self):
        DocumentSequence.objects.create(name="JRN", year=2025, next_value=9999)
        first = create_manual_journal(JAN, "Setoran modal", [
            {"account_code": "1-10200", "debit": 1_000_000},
            {"account_code": "3-30100", "credit": 1_000_000},
        ])
        second = create_manual_journal(JAN, "Sewa", [
            {"account_code": "6-60200", "debit": 400_000},
            {"account_code": "1-10200", "credit": 400_000},
        ])
        self.assertEqual((first.number, second.number),
                         ("JRN-2025-9999", "JRN-2025-10000"))

        gl = general_ledger("1-10200")
        self.assertEqual([r["journal_number"] for r in gl["rows"]],
                         [first.number, second.number])
        self.assertEqual([r["balance"] for r in gl["rows"]], [1_000_000, 600_000])
