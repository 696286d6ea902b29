from .billing import (create_bill, create_invoice, create_manual_journal,
                      refresh_bill_status, refresh_invoice_status)
from .payment import create_payment, create_receipt
from .periods import (assert_period_open, close_period, is_period_closed,
                      period_bounds, period_for, reopen_period,
                      run_period_audit)
from .posting import (get_journal, list_journals, next_number, post_draft,
                      post_journal)
from .reports import (account_balance, ap_aging, ar_aging, balance_sheet,
                      bill_outstanding, general_ledger, invoice_outstanding,
                      profit_loss, trial_balance, vat_position)
from .voiding import void_document, void_journal

__all__ = [
    "create_bill", "create_invoice", "create_manual_journal",
    "refresh_bill_status", "refresh_invoice_status",
    "create_payment", "create_receipt",
    "assert_period_open", "close_period", "is_period_closed", "period_bounds",
    "period_for",
    "reopen_period", "run_period_audit",
    "get_journal", "list_journals", "next_number", "post_draft", "post_journal",
    "account_balance", "ap_aging", "ar_aging", "balance_sheet",
    "bill_outstanding", "general_ledger", "invoice_outstanding",
    "profit_loss", "trial_balance", "vat_position",
    "void_document", "void_journal",
]
