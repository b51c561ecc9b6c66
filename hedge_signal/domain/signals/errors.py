"""
Domain-specific errors for the signals bounded context.

All errors raised from the domain layer must be defined here.
Request and payment errors are mapped to HTTP responses at the
interface layer. Model errors never leave the recommendation engine.
No framework imports allowed.
"""

from typing import Any


class SignalDomainError(Exception):
    """Base error for all signal domain errors."""

    code = "SIGNAL_ERROR"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)


class ValidationError(SignalDomainError):
    """Raised when a request field is malformed or out of range."""

    code = "VALIDATION_ERROR"

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(f"Invalid {field}: {reason}")
        self.field = field
        self.reason = reason


class PaymentRequiredError(SignalDomainError):
    """Raised when a paid resource is requested without a payment proof.

    Not a failure as such: the caller is expected to pay and retry
    using the attached requirement descriptor.
    """

    code = "PAYMENT_REQUIRED"

    def __init__(self, requirement: Any) -> None:
        super().__init__("Payment required")
        self.requirement = requirement


class InvalidReceiptError(SignalDomainError):
    """Raised when a payment proof is structurally invalid."""

    code = "INVALID_RECEIPT"

    def __init__(self, reason: str) -> None:
        super().__init__(f"Invalid payment receipt: {reason}")
        self.reason = reason


class ReceiptAlreadyUsedError(InvalidReceiptError):
    """Raised when a payment proof has already released a signal."""

    code = "RECEIPT_ALREADY_USED"

    def __init__(self, tx_reference: str) -> None:
        super().__init__(f"receipt already used: {tx_reference}")
        self.tx_reference = tx_reference


class InsufficientPaymentError(SignalDomainError):
    """Raised when the paid amount is below the required price."""

    code = "INSUFFICIENT_PAYMENT"

    def __init__(self, required: int, paid: int) -> None:
        super().__init__(
            f"Insufficient payment: required {required}, paid {paid}"
        )
        self.required = required
        self.paid = paid


class WrongDestinationError(SignalDomainError):
    """Raised when a payment was sent to an address other than the payee."""

    code = "WRONG_DESTINATION"

    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(
            f"Payment sent to wrong address: expected {expected}, got {actual}"
        )
        self.expected = expected
        self.actual = actual


class ModelUnavailableError(SignalDomainError):
    """Raised when the recommendation model cannot be reached in time."""

    code = "MODEL_UNAVAILABLE"

    def __init__(self, reason: str) -> None:
        super().__init__(f"Recommendation model unavailable: {reason}")
        self.reason = reason


class ModelResponseInvalidError(SignalDomainError):
    """Raised when the model replied with output that is not a valid signal."""

    code = "MODEL_RESPONSE_INVALID"

    def __init__(self, reason: str) -> None:
        super().__init__(f"Recommendation model response invalid: {reason}")
        self.reason = reason
