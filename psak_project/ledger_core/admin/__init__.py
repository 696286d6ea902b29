from .auditlog import AuditLogAdmin
from .documents import (BillAdmin, BillLineInline, InvoiceAdmin,
                        InvoiceLineInline, PaymentAdmin, ReceiptAdmin)
from .journal import JournalAdmin, JournalLineAdmin, JournalLineInline
from .masterdata import AccountAdmin, ClientAdmin, ProjectAdmin, VendorAdmin
from .period import PeriodAuditAdmin, PeriodSnapshotAdmin, PeriodStatusAdmin
