from django.core.exceptions import ValidationError


class LedgerError(Exception):
    """Base class for ledger write-path errors that are not input validation."""


class UnbalancedJournalError(LedgerError):
    """Raised when a journal fails the double-entry balance check."""

    def __init__(self, total_debit, total_credit, message=None):
        self.total_debit = total_debit
        self.total_credit = total_credit
        super().__init__(
            message
            or f"Journal not balanced: debits={total_debit}, credits={total_credit}"
        )


class PeriodLockedError(LedgerError):
    """Raised when a mutation targets a CLOSED period."""

    def __init__(self, period, message=None):
        self.period = period
        super().__init__(message or f"Period {period} is closed")


class PeriodCloseBlockedError(LedgerError):
    """Raised when the pre-close audit is missing or has CRITICAL issues."""

    def __init__(self, period, critical_issues=None, message=None):
        self.period = period
        self.critical_issues = list(critical_issues or [])
        super().__init__(
            message or f"Cannot close period {period} with critical issues")


class TaxRuleError(LedgerError):
    """Raised when a tax line cannot be produced from the supplied data."""

    def __init__(self, message, field=None):
        self.field = field
        super().__init__(message)


class AlreadyVoidedError(LedgerError):
    """Raised when voiding something whose void has already been recorded."""


class MissingProject(ValidationError):
    """COGS postings must carry a project code."""

    def __init__(self, message="COGS lines must have a project code", params=None):
        super().__init__({"project_code": [message]}, params=params)


class ExceedsBalance(ValidationError):
    """Applied amount is larger than what the document still has outstanding."""

    def __init__(self, requested, outstanding):
        self.requested = requested
        self.outstanding = outstanding
        super().__init__(
            {
                "amount": [
                    f"Amount {requested} exceeds outstanding balance {outstanding}"
                ]
            }
        )
