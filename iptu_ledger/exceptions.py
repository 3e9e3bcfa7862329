"""
Typed Exception Hierarchy for the IPTU ledger.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Every ledger failure is terminal and synchronous: the operation either
applies all of its effects or none of them, and the caller decides whether
to retry.  Callers must be able to tell failures apart without parsing
message strings, so:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example:
    try:
        ledger.pay_installment(caller, assessment_id, 1, 250)
    except WrongAmountError as e:
        api_response(code=e.code, expected=e.expected, received=e.received)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    IptuLedgerError (base)
    |
    +-- AccessError
    |   +-- UnauthorizedError
    |   +-- RolesNotInitializedError
    |
    +-- InvalidParamsError
    |
    +-- AssessmentError
    |   +-- AssessmentAlreadyExistsError
    |   +-- AssessmentNotFoundError
    |   +-- AssessmentNotActiveError
    |
    +-- PaymentError
    |   +-- InvalidInstallmentError
    |   +-- InstallmentAlreadyPaidError
    |   +-- WrongAmountError
    |   +-- WrongPayerError
    |
    +-- TransferError
    |   +-- TransferFailedError
    |
    +-- ConcurrencyError
    |   +-- ReentrantCallError
    |
    +-- ImmutabilityError
    |   +-- ImmutabilityViolationError
    |
    +-- AuditError
        +-- EventChainBrokenError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Code                   | When Raised
-----------------------|------------------------------------------------------
UNAUTHORIZED           | Caller does not hold the required role
ROLES_NOT_INITIALIZED  | Admin/treasury singletons were never bootstrapped
INVALID_PARAMS         | Empty code, null identity, zero amount/count/year,
                       | or total not divisible by installment count
ALREADY_EXISTS         | (registration_code, year) already assessed
NOT_FOUND              | Unknown assessment id
NOT_ACTIVE             | Assessment deactivated by admin
INVALID_INSTALLMENT    | Installment number outside [1, installment_count]
ALREADY_PAID           | Installment already marked paid
WRONG_AMOUNT           | Attached amount != installment amount
WRONG_PAYER            | Caller is not the taxpayer on record
TRANSFER_FAILED        | Forwarding to treasury failed (call rolled back)
REENTRANT              | Mutating call entered while a transfer is in flight
IMMUTABILITY_VIOLATION | Attempt to modify or delete an append-only row
EVENT_CHAIN_BROKEN     | Event log hash chain validation failed
"""


class IptuLedgerError(Exception):
    """
    Base exception for all ledger errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "IPTU_LEDGER_ERROR"


# Access control


class AccessError(IptuLedgerError):
    """Base exception for role/access errors."""

    code: str = "ACCESS_ERROR"


class UnauthorizedError(AccessError):
    """Caller does not hold the role required by the operation."""

    code: str = "UNAUTHORIZED"

    def __init__(self, caller: str, required_role: str):
        self.caller = caller
        self.required_role = required_role
        super().__init__(f"Caller {caller!r} is not {required_role}")


class RolesNotInitializedError(AccessError):
    """The admin/treasury role singletons have not been bootstrapped."""

    code: str = "ROLES_NOT_INITIALIZED"

    def __init__(self, role: str):
        self.role = role
        super().__init__(f"Role '{role}' has not been initialized")


class InvalidParamsError(IptuLedgerError):
    """Operation arguments fail validation."""

    code: str = "INVALID_PARAMS"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


# Assessment lifecycle


class AssessmentError(IptuLedgerError):
    """Base exception for assessment lifecycle errors."""

    code: str = "ASSESSMENT_ERROR"


class AssessmentAlreadyExistsError(AssessmentError):
    """An assessment already occupies the (registration_code, year) key."""

    code: str = "ALREADY_EXISTS"

    def __init__(self, assessment_id: str, registration_code: str | None = None, year: int | None = None):
        self.assessment_id = assessment_id
        self.registration_code = registration_code
        self.year = year
        super().__init__(f"Assessment already exists: {assessment_id}")


class AssessmentNotFoundError(AssessmentError):
    """No assessment with the given identifier."""

    code: str = "NOT_FOUND"

    def __init__(self, assessment_id: str):
        self.assessment_id = assessment_id
        super().__init__(f"Assessment not found: {assessment_id}")


class AssessmentNotActiveError(AssessmentError):
    """Assessment has been deactivated and rejects payments."""

    code: str = "NOT_ACTIVE"

    def __init__(self, assessment_id: str):
        self.assessment_id = assessment_id
        super().__init__(f"Assessment {assessment_id} is not active")


# Payment


class PaymentError(IptuLedgerError):
    """Base exception for installment payment errors."""

    code: str = "PAYMENT_ERROR"


class InvalidInstallmentError(PaymentError):
    """Installment number is outside [1, installment_count]."""

    code: str = "INVALID_INSTALLMENT"

    def __init__(self, assessment_id: str, installment_number: int, installment_count: int):
        self.assessment_id = assessment_id
        self.installment_number = installment_number
        self.installment_count = installment_count
        super().__init__(
            f"Installment {installment_number} is outside 1..{installment_count} "
            f"for assessment {assessment_id}"
        )


class InstallmentAlreadyPaidError(PaymentError):
    """Installment was already paid; payments are never repeated."""

    code: str = "ALREADY_PAID"

    def __init__(self, assessment_id: str, installment_number: int):
        self.assessment_id = assessment_id
        self.installment_number = installment_number
        super().__init__(
            f"Installment {installment_number} of assessment {assessment_id} is already paid"
        )


class WrongAmountError(PaymentError):
    """Attached amount differs from the installment amount."""

    code: str = "WRONG_AMOUNT"

    def __init__(self, assessment_id: str, expected: int, received: int):
        self.assessment_id = assessment_id
        self.expected = expected
        self.received = received
        super().__init__(
            f"Wrong amount for assessment {assessment_id}: "
            f"expected {expected}, received {received}"
        )


class WrongPayerError(PaymentError):
    """Only the taxpayer on record may pay an assessment."""

    code: str = "WRONG_PAYER"

    def __init__(self, assessment_id: str, payer: str, taxpayer: str):
        self.assessment_id = assessment_id
        self.payer = payer
        self.taxpayer = taxpayer
        super().__init__(
            f"Payer {payer!r} is not the taxpayer of assessment {assessment_id}"
        )


# Fund movement


class TransferError(IptuLedgerError):
    """Base exception for fund-forwarding errors."""

    code: str = "TRANSFER_ERROR"


class TransferFailedError(TransferError):
    """
    Forwarding funds to the treasury failed.

    Every mutation recorded earlier in the same call has been rolled back.
    """

    code: str = "TRANSFER_FAILED"

    def __init__(self, to: str, amount: int, reason: str):
        self.to = to
        self.amount = amount
        self.reason = reason
        super().__init__(f"Transfer of {amount} to {to!r} failed: {reason}")


# Concurrency


class ConcurrencyError(IptuLedgerError):
    """Base exception for concurrency errors."""

    code: str = "CONCURRENCY_ERROR"


class ReentrantCallError(ConcurrencyError):
    """A mutating operation was entered while another one holds the guard."""

    code: str = "REENTRANT"

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Re-entrant call to {operation} rejected")


# Immutability


class ImmutabilityError(IptuLedgerError):
    """Base exception for immutability violations."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """Attempt to modify or delete an append-only record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Cannot modify immutable {entity_type} {entity_id}: {reason}"
        )


# Audit


class AuditError(IptuLedgerError):
    """Base exception for event log integrity errors."""

    code: str = "AUDIT_ERROR"


class EventChainBrokenError(AuditError):
    """The event log hash chain does not validate."""

    code: str = "EVENT_CHAIN_BROKEN"

    def __init__(self, seq: int, expected_hash: str, actual_hash: str):
        self.seq = seq
        self.expected_hash = expected_hash
        self.actual_hash = actual_hash
        super().__init__(
            f"Event chain broken at seq {seq}: "
            f"expected {expected_hash}, found {actual_hash}"
        )
