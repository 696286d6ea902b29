import json

from django.contrib.auth import get_user_model
from django.contrib.auth.models import Permission
from django.urls import reverse

from ..models import Bill, PeriodStatus
from .base import LedgerTestCase

FP = "010.000-25.00000013"


class LedgerApiTests(LedgerTestCase):

    def post_json(self, name, payload=None, **kwargs):
        return self.client.post(
            reverse(f"ledger_core:{name}", kwargs=kwargs or None),
            data=json.dumps(payload or {}),
            content_type="application/json",
        )

    def create_bill(self, amount=10_000_000, **extra):
        payload = {
            "date": "2025-01-10",
            "vendor_id": self.vendor.pk,
            "category": "OPEX",
            "faktur_pajak_number": FP,
            "lines": self.bill_lines(amount),
            **extra,
        }
        return self.post_json("create-bill", payload)

    """ Documents """
    def test_create_bill(self):
        resp = self.create_bill()
        self.assertEqual(resp.status_code, 201)
        body = resp.json()
        self.assertTrue(body["ok"])
        self.assertEqual(body["bill"]["total"], 11_100_000)
        self.assertEqual(body["bill"]["status"], "approved")
        self.assertEqual(body["journal"]["number"], "JRN-2025-0001")
        self.assertEqual(len(body["journal"]["lines"]), 3)

    def test_bill_errors_map_to_status_codes(self):
        resp = self.create_bill(category="COGS", lines=self.bill_lines(account="5-50100"))
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "MissingProject")

        resp = self.create_bill(faktur_pajak_number="123")
        self.assertEqual(resp.status_code, 422)
        self.assertEqual(resp.json()["error"], "TaxRuleError")
        self.assertEqual(resp.json()["field"], "faktur_pajak_number")

        resp = self.create_bill(date=None)
        self.assertEqual(resp.status_code, 400)
        self.assertIn("date", resp.json()["detail"])

        resp = self.create_bill(lines=[{"quantity": "abc", "unit_price": 1_000,
                                        "expense_account_code": "6-60100"}])
        self.assertEqual(resp.status_code, 400)
        self.assertIn("lines[0]", resp.json()["detail"])

        self.assertFalse(Bill.objects.exists())

    def test_payment_and_overpayment(self):
        bill_id = self.create_bill().json()["bill"]["id"]

        resp = self.post_json("create-payment", {
            "date": "2025-01-20", "bill_id": bill_id, "amount": 11_000_000})
        self.assertEqual(resp.status_code, 422)
        self.assertEqual(resp.json()["error"], "ExceedsBalance")

        resp = self.post_json("create-payment", {
            "date": "2025-01-20", "bill_id": bill_id, "amount": 10_900_000})
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()["payment"]["pph23_withheld"], 200_000)

    def test_invoice_receipt_and_void(self):
        resp = self.post_json("create-invoice", {
            "date": "2025-01-10", "client_id": self.customer.pk,
            "lines": self.invoice_lines(5_000_000)})
        self.assertEqual(resp.status_code, 201)
        invoice_id = resp.json()["invoice"]["id"]

        resp = self.post_json("create-receipt", {
            "date": "2025-01-15", "invoice_id": invoice_id, "amount": 3_000_000})
        self.assertEqual(resp.status_code, 201)
        receipt_id = resp.json()["receipt"]["id"]

        resp = self.post_json("void-document", {"reason": "Salah input", "date": "2025-01-16"},
                              doc_type="receipt", doc_id=receipt_id)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["reversal"]["kind"], "reversal")

        resp = self.post_json("void-document", {"reason": "lagi"},
                              doc_type="receipt", doc_id=receipt_id)
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json()["error"], "AlreadyVoidedError")

    """ Journals """
    def test_manual_journal_list_detail_and_void(self):
        resp = self.post_json("journals", {
            "date": "2025-01-05", "description": "Modal",
            "lines": [{"account_code": "1-10200", "debit": 1_000_000},
                      {"account_code": "3-30100", "credit": 1_000_000}]})
        self.assertEqual(resp.status_code, 201)
        number = resp.json()["journal"]["number"]

        listing = self.client.get(reverse("ledger_core:journals"), {"period": "2025-01"})
        self.assertEqual([j["number"] for j in listing.json()["journals"]], [number])

        detail = self.client.get(reverse("ledger_core:journal-detail", args=[number]))
        self.assertEqual(detail.status_code, 200)
        self.assertEqual(len(detail.json()["journal"]["lines"]), 2)

        resp = self.post_json("void-journal", {"reason": "Batal", "date": "2025-01-06"},
                              ref=number)
        self.assertEqual(resp.status_code, 200)
        resp = self.post_json("void-journal", {"reason": "Batal"}, ref=number)
        self.assertEqual(resp.status_code, 409)

    def test_unbalanced_manual_journal(self):
        resp = self.post_json("journals", {
            "date": "2025-01-05",
            "lines": [{"account_code": "1-10200", "debit": 1_000_000},
                      {"account_code": "3-30100", "credit": 900_000}]})
        self.assertEqual(resp.status_code, 422)
        self.assertEqual(resp.json()["error"], "UnbalancedJournalError")

    def test_missing_journal_is_404(self):
        resp = self.client.get(reverse("ledger_core:journal-detail", args=["JRN-2025-0404"]))
        self.assertEqual(resp.status_code, 404)

    def test_wrong_method(self):
        resp = self.client.get(reverse("ledger_core:create-bill"))
        self.assertEqual(resp.status_code, 405)

    """ Periods """
    def test_audit_close_and_reopen(self):
        self.create_bill()
        audit = self.post_json("period-audit", period="2025-01").json()
        self.assertEqual(audit["issues"], [])

        resp = self.post_json("period-close", {"audit_id": audit["audit_id"]},
                              period="2025-01")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(resp.json()["snapshot"]), 20)

        resp = self.create_bill(amount=1_000)
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json()["error"], "PeriodLockedError")

        resp = self.post_json("period-reopen", {"reason": "Koreksi"}, period="2025-01")
        self.assertEqual(resp.status_code, 403)

        controller = get_user_model().objects.create_user("controller", password="x")
        controller.user_permissions.add(Permission.objects.get(codename="reopen_period"))
        self.client.force_login(controller)
        resp = self.post_json("period-reopen", {"reason": "Koreksi"}, period="2025-01")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["status"], "OPEN")
        self.assertFalse(PeriodStatus.objects.get(period="2025-01").is_closed)

    def test_close_without_audit_is_409(self):
        resp = self.post_json("period-close", period="2025-01")
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json()["error"], "PeriodCloseBlockedError")

    """ Reports """
    def test_reports(self):
        self.create_bill()
        tb = self.client.get(reverse("ledger_core:trial-balance"), {"as_of": "2025-01-31"})
        self.assertEqual(tb.status_code, 200)
        self.assertTrue(tb.json()["is_balanced"])
        self.assertEqual(tb.json()["total_debit"], 11_100_000)

        bs = self.client.get(reverse("ledger_core:balance-sheet"), {"as_of": "2025-01-31"})
        self.assertTrue(bs.json()["is_balanced"])

        pl = self.client.get(reverse("ledger_core:profit-loss"), {"start_period": "2025-01"})
        self.assertEqual(pl.json()["opex"], 10_000_000)

        aging = self.client.get(reverse("ledger_core:ap-aging"), {"as_of": "2025-01-31"})
        self.assertEqual(aging.json()["buckets"]["0-30"], 11_100_000)

        vat = self.client.get(reverse("ledger_core:vat-position", args=["2025-01"]))
        self.assertEqual(vat.json()["vat_input"], 1_100_000)

        gl = self.client.get(reverse("ledger_core:general-ledger", args=["2-20100"]))
        self.assertEqual(gl.json()["closing_balance"], 11_100_000)

    def test_report_parameter_errors(self):
        resp = self.client.get(reverse("ledger_core:profit-loss"))
        self.assertEqual(resp.status_code, 400)
        resp = self.client.get(reverse("ledger_core:trial-balance"), {"as_of": "31/01/2025"})
        self.assertEqual(resp.status_code, 400)


class LedgerAdminTests(LedgerTestCase):
    def setUp(self):
        super().setUp()
        admin_user = get_user_model().objects.create_superuser(
            "admin", "admin@example.com", "x")
        self.client.force_login(admin_user)

    def test_ledger_pages_are_view_only(self):
        resp = self.client.post(
            reverse("ledger_core:create-bill"),
            data=json.dumps({"date": "2025-01-10", "vendor_id": self.vendor.pk,
                             "category": "OPEX", "lines": self.bill_lines()}),
            content_type="application/json",
        )
        journal_id = resp.json()["journal"]["id"]

        changelist = self.client.get(reverse("admin:ledger_core_journal_changelist"))
        self.assertEqual(changelist.status_code, 200)
        self.assertContains(changelist, "JRN-2025-0001")

        change = self.client.get(
            reverse("admin:ledger_core_journal_change", args=[journal_id]))
        self.assertEqual(change.status_code, 200)

        add = self.client.get(reverse("admin:ledger_core_journal_add"))
        self.assertEqual(add.status_code, 403)

    def test_master_data_is_editable(self):
        resp = self.client.get(reverse("admin:ledger_core_account_changelist"))
        self.assertEqual(resp.status_code, 200)
        self.assertContains(resp, "1-10100")
