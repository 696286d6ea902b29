import datetime
from io import StringIO
from unittest import mock

from django.contrib.auth import get_user_model
from django.contrib.auth.models import Permission
from django.core.exceptions import PermissionDenied, ValidationError
from django.core.management import call_command
from django.core.management.base import CommandError
from django.db import transaction
from django.db.models.query import QuerySet

from ..exceptions import PeriodCloseBlockedError, PeriodLockedError
from ..models import (Account, AuditLog, Bill, Invoice, Journal, JournalLine,
                      Payment, PeriodSnapshot, PeriodStatus)
from ..services import (close_period, create_bill, create_invoice,
                        create_payment, is_period_closed, period_bounds,
                        post_journal, reopen_period, run_period_audit,
                        void_document, void_journal)
from ..services.entries import LineDraft
from .base import JAN, LedgerTestCase

FP = "010.000-25.00000007"


def cash_sale(amount=1_000_000):
    return [LineDraft("1-10100", debit=amount), LineDraft("4-40100", credit=amount)]


class PeriodHelperTests(LedgerTestCase):
    def test_bounds(self):
        self.assertEqual(period_bounds("2024-02"),
                         (datetime.date(2024, 2, 1), datetime.date(2024, 2, 29)))
        self.assertEqual(period_bounds(JAN),
                         (datetime.date(2025, 1, 1), datetime.date(2025, 1, 31)))

    def test_malformed_period_rejected(self):
        with self.assertRaises(ValidationError):
            period_bounds("2025-13")

    def test_period_without_row_is_open(self):
        self.assertFalse(is_period_closed("2025-01"))
        PeriodStatus.objects.create(period="2025-01", status="OPEN")
        self.assertFalse(is_period_closed(JAN))


class PeriodAuditTests(LedgerTestCase):
    def test_clean_period(self):
        create_bill(JAN, self.vendor, "OPEX", self.bill_lines(10_000_000),
                    faktur_pajak_number=FP)
        create_invoice(JAN, self.customer, self.invoice_lines(5_000_000))

        audit = run_period_audit("2025-01")
        self.assertEqual(audit.status, "COMPLETED")
        self.assertEqual(audit.issues, [])
        self.assertEqual(audit.metrics["total_journals"], 2)
        self.assertEqual(audit.metrics["vat_input"], 1_100_000)
        self.assertEqual(audit.metrics["vat_output"], 550_000)
        self.assertEqual(audit.metrics["vat_net_payable"], -550_000)
        self.assertIn("No issues", audit.summary)

    def test_payment_without_withholding_is_critical(self):
        bill, _ = create_bill(JAN, self.plain_vendor, "OPEX", self.bill_lines(1_000_000))
        create_payment(JAN, bill, 1_000_000)
        # vendor flagged after the fact: the payment withheld nothing
        self.plain_vendor.subject_to_pph23 = True
        self.plain_vendor.npwp = "03.456.789.0-123.000"
        self.plain_vendor.save()

        audit = run_period_audit("2025-01")
        critical = audit.critical_issues
        self.assertEqual(len(critical), 1)
        self.assertEqual(critical[0]["issue_type"], "tax_risk")
        self.assertEqual(critical[0]["related_entity_type"], "payment")
        self.assertEqual(audit.metrics["critical_issues"], 1)

    def test_partial_payments_withhold_once(self):
        bill, _ = create_bill(JAN, self.vendor, "OPEX", self.bill_lines(10_000_000))
        create_payment(JAN, bill, 4_000_000)
        second, _ = create_payment(JAN, bill, 1_000_000)
        self.assertEqual(second.pph23_withheld, 0)
        self.assertEqual(run_period_audit("2025-01").critical_issues, [])

    def test_tampered_lines_are_critical(self):
        je = post_journal(JAN, "Penjualan", cash_sale())
        # simulate a write that bypassed the journal store
        JournalLine.objects.filter(journal=je, account_id="1-10100").update(debit=999)

        audit = run_period_audit("2025-01")
        self.assertEqual(len(audit.critical_issues), 1)
        self.assertEqual(audit.critical_issues[0]["issue_type"], "accounting_error")

    def test_high_and_medium_issues(self):
        bill, _ = create_bill(JAN, self.vendor, "OPEX", self.bill_lines(10_000_000),
                              faktur_pajak_number=FP)
        Bill.objects.filter(pk=bill.pk).update(faktur_pajak_number=None)
        create_bill(JAN, self.plain_vendor, "OPEX", self.bill_lines(750_000))
        create_bill(JAN, self.plain_vendor, "OPEX", self.bill_lines(750_000))
        cogs_bill, _ = create_bill(JAN, self.plain_vendor, "COGS",
                                   self.bill_lines(300_000, account="5-50100"),
                                   project=self.project)
        JournalLine.objects.filter(journal=cogs_bill.journal,
                                   account_id="5-50100").update(project_code="")

        audit = run_period_audit("2025-01")
        severities = sorted(i["severity"] for i in audit.issues)
        self.assertEqual(severities, ["HIGH", "HIGH", "MEDIUM"])
        self.assertEqual(audit.metrics["high_issues"], 2)
        self.assertEqual(audit.metrics["medium_issues"], 1)
        self.assertEqual(audit.critical_issues, [])


class PeriodCloseTests(LedgerTestCase):
    def setUp(self):
        super().setUp()
        post_journal(JAN, "Penjualan", cash_sale(1_000_000))
        post_journal(datetime.date(2025, 2, 5), "Februari", cash_sale(250_000))

    def test_close_snapshots_and_locks(self):
        audit = run_period_audit("2025-01")
        snapshot = close_period("2025-01", audit.pk)

        self.assertEqual(len(snapshot), Account.objects.count())
        cash = PeriodSnapshot.objects.get(period="2025-01", account_id="1-10100")
        self.assertEqual(cash.snapshot_date, datetime.date(2025, 1, 31))
        # February activity is after the snapshot date
        self.assertEqual((cash.debit_total, cash.credit_total, cash.balance),
                         (1_000_000, 0, 1_000_000))
        revenue = PeriodSnapshot.objects.get(period="2025-01", account_id="4-40100")
        self.assertEqual(revenue.balance, 1_000_000)

        status = PeriodStatus.objects.get(period="2025-01")
        self.assertTrue(status.is_closed)
        self.assertEqual(status.audit, audit)
        self.assertTrue(AuditLog.objects.filter(action="close_period").exists())

        with self.assertRaises(PeriodLockedError):
            post_journal(datetime.date(2025, 1, 31), "telat", cash_sale())
        with self.assertRaises(PeriodLockedError):
            create_bill(JAN, self.vendor, "OPEX", self.bill_lines())
        self.assertFalse(Bill.objects.exists())

    def test_close_needs_completed_audit_of_same_period(self):
        with self.assertRaises(PeriodCloseBlockedError):
            close_period("2025-01", None)
        with self.assertRaises(PeriodCloseBlockedError):
            close_period("2025-01", 9999)
        other = run_period_audit("2025-02")
        with self.assertRaises(PeriodCloseBlockedError):
            close_period("2025-01", other.pk)
        self.assertFalse(is_period_closed("2025-01"))

    def test_critical_issue_blocks_close(self):
        JournalLine.objects.filter(account_id="4-40100", credit=1_000_000).update(
            credit=1_000_001)
        audit = run_period_audit("2025-01")
        with self.assertRaises(PeriodCloseBlockedError) as cm:
            close_period("2025-01", audit.pk)
        self.assertEqual(len(cm.exception.critical_issues), 1)
        self.assertFalse(is_period_closed("2025-01"))
        self.assertFalse(PeriodSnapshot.objects.exists())

    def test_closing_twice_fails(self):
        close_period("2025-01", run_period_audit("2025-01").pk)
        with self.assertRaises(PeriodLockedError):
            close_period("2025-01", run_period_audit("2025-01").pk)

    def test_closed_period_row_cannot_be_deleted(self):
        close_period("2025-01", run_period_audit("2025-01").pk)
        with self.assertRaises(ValidationError):
            with transaction.atomic():
                PeriodStatus.objects.get(period="2025-01").delete()
        self.assertTrue(is_period_closed("2025-01"))


class PeriodReopenTests(LedgerTestCase):
    def setUp(self):
        super().setUp()
        post_journal(JAN, "Penjualan", cash_sale())
        close_period("2025-01", run_period_audit("2025-01").pk)
        User = get_user_model()
        self.clerk = User.objects.create_user("clerk", password="x")
        controller = User.objects.create_user("controller", password="x")
        controller.user_permissions.add(
            Permission.objects.get(codename="reopen_period"))
        # fresh instance: permissions are cached per user object
        self.controller = User.objects.get(pk=controller.pk)

    def test_reopen_requires_permission(self):
        with self.assertRaises(PermissionDenied):
            reopen_period("2025-01", self.clerk, "koreksi")
        with self.assertRaises(PermissionDenied):
            reopen_period("2025-01", None, "koreksi")
        self.assertTrue(is_period_closed("2025-01"))

    def test_reopen_requires_reason(self):
        with self.assertRaises(ValidationError):
            reopen_period("2025-01", self.controller, "  ")

    def test_reopen_unlocks_and_is_logged(self):
        status = reopen_period("2025-01", self.controller, "Koreksi faktur vendor")
        self.assertEqual(status.status, "OPEN")
        self.assertEqual(status.reopened_by, self.controller)
        self.assertFalse(is_period_closed("2025-01"))

        log = AuditLog.objects.get(action="reopen_period")
        self.assertEqual(log.user, self.controller)
        self.assertEqual(log.reason, "Koreksi faktur vendor")

        post_journal(JAN, "koreksi", cash_sale(10_000))

    def test_reopen_open_period_fails(self):
        with self.assertRaises(ValidationError):
            reopen_period("2025-02", self.controller, "tidak perlu")


class ClosePeriodCommandTests(LedgerTestCase):
    def test_command_closes_clean_period(self):
        post_journal(JAN, "Penjualan", cash_sale())
        out = StringIO()
        call_command("close_period", "2025-01", stdout=out)
        self.assertTrue(is_period_closed("2025-01"))
        self.assertIn("closed", out.getvalue())

    def test_command_reports_blocked_close(self):
        je = post_journal(JAN, "Penjualan", cash_sale())
        JournalLine.objects.filter(journal=je, account_id="1-10100").update(debit=1)
        with self.assertRaises(CommandError):
            call_command("close_period", "2025-01", stdout=StringIO())
        self.assertFalse(is_period_closed("2025-01"))

    def test_command_unknown_user(self):
        with self.assertRaises(CommandError):
            call_command("close_period", "2025-01", "--user", "nobody",
                         stdout=StringIO())


class PeriodLockTests(LedgerTestCase):
    def setUp(self):
        super().setUp()
        self.bill, _ = create_bill(
            JAN, self.vendor, "OPEX", self.bill_lines(10_000_000),
            faktur_pajak_number=FP,
        )

    def close(self, period):
        close_period(period, run_period_audit(period).pk)

    def spy_row_locks(self):
        return mock.patch.object(
            QuerySet, "select_for_update", autospec=True,
            side_effect=QuerySet.select_for_update,
        )

    def period_row_locks(self, spy):
        return [c for c in spy.call_args_list if c.args[0].model is PeriodStatus]

    """ Writers take the same row lock as close_period """
    def test_posting_locks_period_row(self):
        with self.spy_row_locks() as spy:
            post_journal(JAN, "Penjualan", cash_sale())
        self.assertGreater(len(self.period_row_locks(spy)), 0)
        self.assertEqual(PeriodStatus.objects.get(period="2025-01").status, "OPEN")

    def test_void_locks_original_and_reversal_periods(self):
        je = post_journal(JAN, "Penjualan", cash_sale())
        with self.spy_row_locks() as spy:
            void_journal(je, "batal", date=datetime.date(2025, 2, 3))
        self.assertGreaterEqual(len(self.period_row_locks(spy)), 2)
        self.assertTrue(PeriodStatus.objects.filter(period="2025-02").exists())

    """ Nothing dated in a closed period is written """
    def test_invoice_in_closed_period_rejected(self):
        self.close("2025-01")
        journals = Journal.objects.count()
        with self.assertRaises(PeriodLockedError):
            create_invoice(JAN, self.customer, self.invoice_lines())
        self.assertFalse(Invoice.objects.exists())
        self.assertEqual(Journal.objects.count(), journals)

    def test_payment_in_closed_period_rejected(self):
        self.close("2025-01")
        journals = Journal.objects.count()
        with self.assertRaises(PeriodLockedError):
            create_payment(datetime.date(2025, 1, 20), self.bill, 10_900_000)
        self.assertFalse(Payment.objects.exists())
        self.assertEqual(Journal.objects.count(), journals)
        self.bill.refresh_from_db()
        self.assertEqual(self.bill.status, "approved")

    def test_void_of_bill_in_closed_period_rejected(self):
        self.close("2025-01")
        journals = Journal.objects.count()
        with self.assertRaises(PeriodLockedError):
            void_document("bill", self.bill.pk, "batal",
                          date=datetime.date(2025, 2, 3))
        self.assertEqual(Journal.objects.count(), journals)
        self.bill.refresh_from_db()
        self.assertFalse(self.bill.is_voided)
        self.assertEqual(self.bill.status, "approved")

    def test_void_into_closed_later_period_rejected(self):
        self.close("2025-02")
        self.assertFalse(is_period_closed("2025-01"))
        journals = Journal.objects.count()
        with self.assertRaises(PeriodLockedError):
            void_document("bill", self.bill.pk, "batal",
                          date=datetime.date(2025, 2, 10))
        self.assertEqual(Journal.objects.count(), journals)
        self.bill.refresh_from_db()
        self.assertFalse(self.bill.is_voided)
        self.bill.journal.refresh_from_db()
        self.assertEqual(self.bill.journal.status, "posted")
