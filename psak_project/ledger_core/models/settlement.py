from django.db import models
from .bill import Bill
from .counterparty import Client, Vendor
from .document import SettlementDocument


class Payment(SettlementDocument):
    """
    Vendor payment against one bill.
    amount = net cash leaving the bank; pph23_withheld is kept back and
    owed to the tax office. The bill is settled by amount + pph23_withheld.
    """

    doc_type = "vendor_payment"

    bill = models.ForeignKey(
        Bill, on_delete=models.PROTECT, related_name="payments")
    vendor = models.ForeignKey(
        Vendor, on_delete=models.PROTECT, related_name="payments")

    @property
    def applied_amount(self):
        return self.amount + self.pph23_withheld


class Receipt(SettlementDocument):
    """
    Cash receipt against one invoice.
    amount = receivable cleared; the client keeps pph23_withheld back,
    so the bank receives amount - pph23_withheld.
    """

    doc_type = "cash_receipt"

    invoice = models.ForeignKey(
        "Invoice", on_delete=models.PROTECT, related_name="receipts")
    client = models.ForeignKey(
        Client, on_delete=models.PROTECT, related_name="receipts")

    @property
    def applied_amount(self):
        return self.amount

    @property
    def cash_amount(self):
        return self.amount - self.pph23_withheld
