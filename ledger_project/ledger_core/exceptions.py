"""
Typed failures raised by the posting core.

Every error carries a stable ``code``, a human message, an HTTP-equivalent
``status_code`` and optional structured ``details`` (ids involved), so an
HTTP layer can render it without inspecting the message.
"""


class AccountingError(Exception):
    """Base class for all ledger failures."""

    code = "ACCOUNTING_ERROR"
    status_code = 400

    def __init__(self, message, code=None, status_code=None, details=None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}

    def as_dict(self):
        payload = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload

    def __repr__(self):
        return f"{type(self).__name__}({self.code}: {self.message})"


class UnbalancedEntry(AccountingError):
    """Raised when journal lines fail the double-entry balance check."""
    code = "UNBALANCED_ENTRY"


class AlreadyPosted(AccountingError):
    """Raised when a document already has an active journal entry."""
    code = "ALREADY_POSTED"
    status_code = 409


class AlreadyVoided(AccountingError):
    code = "ALREADY_VOIDED"
    status_code = 409


class ImmutablePostedEntry(AccountingError):
    code = "IMMUTABLE_POSTED_ENTRY"


class EntityNotFound(AccountingError):
    code = "ENTITY_NOT_FOUND"
    status_code = 403


class GLAccountNotFound(AccountingError):
    code = "GL_ACCOUNT_NOT_FOUND"
    status_code = 404


class GLAccountInactive(AccountingError):
    code = "GL_ACCOUNT_INACTIVE"


class DuplicateAccountCode(AccountingError):
    code = "DUPLICATE_ACCOUNT_CODE"
    status_code = 409


class MissingFXRate(AccountingError):
    code = "MISSING_FX_RATE"


class SplitAmountMismatch(AccountingError):
    code = "SPLIT_AMOUNT_MISMATCH"


class CrossEntityReference(AccountingError):
    code = "CROSS_ENTITY_REFERENCE"
    status_code = 403


class FiscalPeriodClosed(AccountingError):
    code = "FISCAL_PERIOD_CLOSED"


class SeparationOfDuties(AccountingError):
    code = "SEPARATION_OF_DUTIES"
    status_code = 403


class BankAccountNotMapped(AccountingError):
    code = "BANK_ACCOUNT_NOT_MAPPED"


class RecordNotFound(AccountingError):
    """Source document or entry missing, or owned by another tenant."""
    code = "NOT_FOUND"
    status_code = 404


class DocumentNotPostable(AccountingError):
    code = "DOCUMENT_NOT_POSTABLE"


class InvalidStatusTransition(AccountingError):
    code = "INVALID_STATUS_TRANSITION"


class PaymentExceedsBalance(AccountingError):
    code = "PAYMENT_EXCEEDS_BALANCE"


class InvalidInput(AccountingError):
    code = "INVALID_INPUT"


class FiscalPeriodError(AccountingError):
    """Lock/close/reopen rule violations; the code names the rule."""


class SerializationConflict(AccountingError):
    """
    The storage layer aborted the transaction because of a concurrent writer.
    Nothing was written; the caller may retry the whole operation.
    """
    code = "SERIALIZATION_FAILURE"
    status_code = 409
    retryable = True
