"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    status_code = 400


class ValidationError(DomainException):
    """Operation rejected before any state was mutated"""

    status_code = 422


class InsufficientFundsError(ValidationError):
    """Balance does not cover the amount plus fees"""

    pass


class InvalidAmountError(ValidationError):
    """Amount is zero, negative or not a finite number"""

    pass


class UnsupportedCurrencyError(ValidationError):
    """Currency is not part of the fiat or crypto tables"""

    pass


class AccountNotFoundError(ValidationError):
    """No account matches the given id, handle or number"""

    status_code = 404


class RecipientNotFoundError(ValidationError):
    """Transfer or payee target does not exist or is the sender"""

    status_code = 404


class UnknownCatalogItemError(ValidationError):
    """Job, course, property, staking plan or loan offer id is unknown"""

    status_code = 404


class DuplicateAccountError(ValidationError):
    """Username is already registered"""

    status_code = 409


class DuplicatePayeeError(ValidationError):
    """Payee is already saved"""

    status_code = 409


class AlreadyEnrolledError(ValidationError):
    """Course is already in progress or completed"""

    status_code = 409


class PropertyAlreadyAcquiredError(ValidationError):
    """Property is already owned or rented"""

    status_code = 409


class PropertyNotHeldError(ValidationError):
    """Property is not held with the required ownership type"""

    status_code = 409


class DuplicateLoanError(ValidationError):
    """An active loan of the same offer already exists"""

    status_code = 409


class QualificationRequiredError(ValidationError):
    """Job requires a completed course"""

    pass


class StakeNotFoundError(ValidationError):
    """Stake id is unknown for this account"""

    status_code = 404


class StakeNotMaturedError(ValidationError):
    """Stake end time has not been reached"""

    pass


class NothingToClaimError(ValidationError):
    """Fee pool is empty"""

    status_code = 409


class ConcurrentUpdateError(DomainException):
    """Account was saved by another request after this copy was loaded"""

    status_code = 409


class FeePoolError(DomainException):
    """Fee pool could not be credited"""

    status_code = 503


class FeePoolContentionError(FeePoolError):
    """Claim kept losing the optimistic version check"""

    pass
