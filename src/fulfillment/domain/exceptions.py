"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.

Checkout failures fall into two families the customer must be able to tell
apart: stock could not be reserved (``InsufficientStockError``), or the
payment step failed after nothing was charged and the hold was returned
(``PaymentStepError`` subclasses).
"""


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class ProofMissingError(ValidationError):
    """An offline transfer checkout was submitted without a proof file."""


class ProofTooLargeError(ValidationError):
    """The proof file exceeds the configured size ceiling."""

    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(
            f"Payment proof is {size} bytes; the maximum is {limit} bytes"
        )


class InsufficientStockError(DomainException):
    """The cart could not be reserved because an item ran out."""

    def __init__(self, product_id: str) -> None:
        self.product_id = product_id
        super().__init__(
            f"Your cart could not be reserved because product '{product_id}' "
            f"is now out of stock"
        )


class DuplicateSubmissionError(DomainException):
    """A reservation token already backs an open checkout or an order."""

    def __init__(self, token: str) -> None:
        self.token = token
        super().__init__(f"Checkout '{token}' was already submitted")


class InvalidTransitionError(DomainException):
    """An order status change is not an edge of the state machine."""

    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Cannot move order from {current} to {target}")


class PaymentStepError(DomainException):
    """The payment step failed; no charge was made and stock was released."""

    user_message = (
        "Your payment step failed but nothing was charged and no stock is "
        "held. Please try again."
    )


class ProofUploadFailed(PaymentStepError):
    """Storing the payment proof in object storage failed."""


class GatewayRequestFailed(PaymentStepError):
    """The hosted payment gateway rejected or did not answer a request."""


class ConcurrencyError(DomainException):
    """A conditional write kept losing to concurrent writers."""


class InvalidSignatureError(DomainException):
    """A payment webhook did not carry a valid signature."""
