"""
Typed Exception Hierarchy for the Ledger Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (screens, importers, tests) must react to ledger failures by TYPE,
never by parsing message strings.  Every exception carries:
  1. A ``code`` class attribute (machine-readable, stable)
  2. Structured attributes describing the failure (amounts, ids, fields)

Example:
    try:
        journal.create_entry(ctx, spec)
    except UnbalancedEntryError as e:
        show_totals(e.debits, e.credits)
    except ValidationFailedError as e:
        show_message(e.message)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    LedgerError (base)
    |
    +-- ValidationFailedError
    |   +-- UnbalancedEntryError
    |   +-- InvalidEntryError
    |   +-- AccountCodeMismatchError
    |   +-- AccountHasBalanceError
    |   +-- AccountInactiveError
    |   +-- AccountReferencedError
    |   +-- DuplicateAccountCodeError
    |   +-- ClearingMismatchError
    |   +-- OpenItemStateError
    |   +-- EntryAlreadyReversedError
    |   +-- EntryReferencedError
    |   +-- DocumentValidationError
    |   +-- UnknownStoredValueError
    |
    +-- DataNotFoundError
    |   +-- TenantNotFoundError
    |   +-- AccountNotFoundError
    |   +-- RoleAccountNotFoundError
    |   +-- EntryNotFoundError
    |   +-- LineNotFoundError
    |   +-- PartnerNotFoundError
    |   +-- DocumentNotFoundError
    |
    +-- RequiredFieldMissingError
    |
    +-- AuthenticationRequiredError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                       | When Raised
-------------|----------------------------|-----------------------------------------
Validation   | VALIDATION_FAILED          | Generic rule violation
             | JOURNAL_ENTRY_NOT_BALANCED | Debits != Credits
             | INVALID_ENTRY              | < 2 lines, non-positive amount
             | ACCOUNT_CODE_MISMATCH      | Code prefix does not match category
             | ACCOUNT_HAS_BALANCE        | Deleting an account with a balance
             | ACCOUNT_INACTIVE           | Posting to a deactivated account
             | ACCOUNT_REFERENCED         | Deleting an account with postings
             | DUPLICATE_ACCOUNT_CODE     | Code already used in company code
             | CLEARING_MISMATCH          | Clearing line does not fit its target
             | OPEN_ITEM_STATE            | Open item in the wrong status
             | ENTRY_ALREADY_REVERSED     | Second reversal of the same entry
             | ENTRY_REFERENCED           | Deleting an entry whose lines are cleared
             | DOCUMENT_VALIDATION        | Sale/purchase/payment field rules
             | UNKNOWN_STORED_VALUE       | Stored enum value is not recognised
-------------|----------------------------|-----------------------------------------
Not found    | DATA_NOT_FOUND             | Generic missing reference
             | TENANT_NOT_FOUND           | Tenant id does not exist
             | ACCOUNT_NOT_FOUND          | Account id/code does not exist
             | ROLE_ACCOUNT_NOT_FOUND     | No account carries the system role
             | ENTRY_NOT_FOUND            | Journal entry id does not exist
             | LINE_NOT_FOUND             | Journal line id does not exist
             | PARTNER_NOT_FOUND          | Business partner does not exist
             | DOCUMENT_NOT_FOUND         | Payment/sale/purchase/item missing
-------------|----------------------------|-----------------------------------------
Input        | REQUIRED_FIELD_MISSING     | Identity-critical field empty
Session      | AUTHENTICATION_REQUIRED    | No tenant context supplied

===============================================================================
DESIGN DECISIONS
===============================================================================

1. Inherit from Exception, not ValueError/KeyError: domain failures are
   caught as a group and never confused with programming errors.
2. ``code`` is a class attribute so it is available without instantiation.
3. Structured attributes are set BEFORE ``super().__init__`` so that the
   structured log formatter can serialise them.
"""


class LedgerError(Exception):
    """
    Base exception for all ledger kernel errors.

    All subclasses must define a ``code`` class attribute.
    """

    code: str = "LEDGER_ERROR"


# =============================================================================
# Validation
# =============================================================================


class ValidationFailedError(LedgerError):
    """A business rule rejected the operation before anything was written."""

    code: str = "VALIDATION_FAILED"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class UnbalancedEntryError(ValidationFailedError):
    """Journal entry debits do not equal credits."""

    code: str = "JOURNAL_ENTRY_NOT_BALANCED"

    def __init__(self, debits: str, credits: str):
        self.debits = debits
        self.credits = credits
        super().__init__(
            "Journal entry is not balanced. Total debits must equal total "
            f"credits: debits={debits}, credits={credits}"
        )


class InvalidEntryError(ValidationFailedError):
    """Journal entry is structurally invalid (line count, amounts)."""

    code: str = "INVALID_ENTRY"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid journal entry: {reason}")


class AccountCodeMismatchError(ValidationFailedError):
    """Account code does not start with its category prefix."""

    code: str = "ACCOUNT_CODE_MISMATCH"

    def __init__(self, account_code: str, account_type: str, expected_prefix: str):
        self.account_code = account_code
        self.account_type = account_type
        self.expected_prefix = expected_prefix
        super().__init__(
            f"Account code must start with {expected_prefix} "
            f"(got '{account_code}' for {account_type})"
        )


class AccountHasBalanceError(ValidationFailedError):
    """Account cannot be deleted while its balance is non-zero."""

    code: str = "ACCOUNT_HAS_BALANCE"

    def __init__(self, account_id: str, balance: str):
        self.account_id = account_id
        self.balance = balance
        super().__init__(
            f"Cannot delete account {account_id} with non-zero balance {balance}"
        )


class AccountInactiveError(ValidationFailedError):
    """Account is deactivated and cannot receive postings."""

    code: str = "ACCOUNT_INACTIVE"

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(f"Account {account_id} is inactive")


class AccountReferencedError(ValidationFailedError):
    """Account cannot be deleted because journal lines reference it."""

    code: str = "ACCOUNT_REFERENCED"

    def __init__(self, account_id: str, line_count: int):
        self.account_id = account_id
        self.line_count = line_count
        super().__init__(
            f"Cannot delete account {account_id}: referenced by {line_count} line(s)"
        )


class DuplicateAccountCodeError(ValidationFailedError):
    """Account code already exists in the company code."""

    code: str = "DUPLICATE_ACCOUNT_CODE"

    def __init__(self, account_code: str):
        self.account_code = account_code
        super().__init__(f"Account code already exists: {account_code}")


class ClearingMismatchError(ValidationFailedError):
    """A clearing line does not match the open item it settles."""

    code: str = "CLEARING_MISMATCH"

    def __init__(self, line_id: str, reason: str):
        self.line_id = line_id
        self.reason = reason
        super().__init__(f"Cannot clear line {line_id}: {reason}")


class OpenItemStateError(ValidationFailedError):
    """Open item is not in a status that allows the operation."""

    code: str = "OPEN_ITEM_STATE"

    def __init__(self, line_id: str, status: str | None, operation: str):
        self.line_id = line_id
        self.status = status
        self.operation = operation
        super().__init__(
            f"Cannot {operation} line {line_id} in status {status}"
        )


class EntryAlreadyReversedError(ValidationFailedError):
    """Journal entry has already been reversed."""

    code: str = "ENTRY_ALREADY_REVERSED"

    def __init__(self, entry_id: str, reversal_entry_id: str):
        self.entry_id = entry_id
        self.reversal_entry_id = reversal_entry_id
        super().__init__(
            f"Journal entry {entry_id} already reversed by {reversal_entry_id}"
        )


class EntryReferencedError(ValidationFailedError):
    """Journal entry lines are settled by other entries."""

    code: str = "ENTRY_REFERENCED"

    def __init__(self, entry_id: str, reason: str):
        self.entry_id = entry_id
        self.reason = reason
        super().__init__(f"Journal entry {entry_id} cannot change: {reason}")


class DocumentValidationError(ValidationFailedError):
    """Business document (sale, purchase, payment) failed validation."""

    code: str = "DOCUMENT_VALIDATION"

    def __init__(self, document_type: str, reason: str):
        self.document_type = document_type
        self.reason = reason
        super().__init__(f"Invalid {document_type}: {reason}")


class UnknownStoredValueError(ValidationFailedError):
    """A stored enum value is not recognised (possible data corruption)."""

    code: str = "UNKNOWN_STORED_VALUE"

    def __init__(self, enum_name: str, value: str):
        self.enum_name = enum_name
        self.value = value
        super().__init__(f"Unknown stored value for {enum_name}: '{value}'")


# =============================================================================
# Not found
# =============================================================================


class DataNotFoundError(LedgerError):
    """A referenced record does not exist at write time."""

    code: str = "DATA_NOT_FOUND"

    def __init__(self, message: str = "The requested data could not be found."):
        self.message = message
        super().__init__(message)


class TenantNotFoundError(DataNotFoundError):
    """Tenant does not exist."""

    code: str = "TENANT_NOT_FOUND"

    def __init__(self, tenant_id: str):
        self.tenant_id = tenant_id
        super().__init__(f"Tenant not found: {tenant_id}")


class AccountNotFoundError(DataNotFoundError):
    """Account does not exist (or belongs to another company code)."""

    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_ref: str):
        self.account_ref = account_ref
        super().__init__(f"Account not found: {account_ref}")


class RoleAccountNotFoundError(DataNotFoundError):
    """No active account carries the requested system role."""

    code: str = "ROLE_ACCOUNT_NOT_FOUND"

    def __init__(self, role: str):
        self.role = role
        super().__init__(f"No account found for role: {role}")


class EntryNotFoundError(DataNotFoundError):
    """Journal entry does not exist."""

    code: str = "ENTRY_NOT_FOUND"

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Journal entry not found: {entry_id}")


class LineNotFoundError(DataNotFoundError):
    """Journal line does not exist."""

    code: str = "LINE_NOT_FOUND"

    def __init__(self, line_id: str):
        self.line_id = line_id
        super().__init__(f"Journal line not found: {line_id}")


class PartnerNotFoundError(DataNotFoundError):
    """Business partner does not exist."""

    code: str = "PARTNER_NOT_FOUND"

    def __init__(self, partner_ref: str):
        self.partner_ref = partner_ref
        super().__init__(f"Business partner not found: {partner_ref}")


class DocumentNotFoundError(DataNotFoundError):
    """Business document does not exist."""

    code: str = "DOCUMENT_NOT_FOUND"

    def __init__(self, document_type: str, document_id: str):
        self.document_type = document_type
        self.document_id = document_id
        super().__init__(f"{document_type} not found: {document_id}")


# =============================================================================
# Input / session
# =============================================================================


class RequiredFieldMissingError(LedgerError):
    """An identity-critical field is empty."""

    code: str = "REQUIRED_FIELD_MISSING"

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"{field} is required.")


class AuthenticationRequiredError(LedgerError):
    """A tenant-scoped operation was attempted without a tenant context."""

    code: str = "AUTHENTICATION_REQUIRED"

    def __init__(self, operation: str | None = None):
        self.operation = operation
        message = "Authentication is required. Please log in."
        if operation:
            message = f"{message} (operation: {operation})"
        super().__init__(message)
