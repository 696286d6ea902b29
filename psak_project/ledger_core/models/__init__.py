from .account import Account
from .auditlog import AuditLog
from .bill import Bill, BillLine
from .counterparty import Client, Project, Vendor
from .invoice import Invoice, InvoiceLine
from .journal import Journal, JournalLine, period_of
from .period import PeriodAudit, PeriodSnapshot, PeriodStatus
from .sequence import DocumentSequence
from .settlement import Payment, Receipt

# source_doc_type -> document model
DOCUMENT_MODELS = {
    model.doc_type: model for model in (Bill, Invoice, Payment, Receipt)
}
