from decimal import Decimal

from django.core.exceptions import ValidationError


class InvalidAmount(ValidationError):
    """Raised when an amount is missing, non-numeric, non-finite or not positive."""

    def __init__(self, message="Invalid payment amount"):
        super().__init__(message)


class NotFoundOrForbidden(Exception):
    """Record missing or owned by another account; the two are never told apart."""

    def __init__(self, kind="Record"):
        self.kind = kind
        super().__init__(f"{kind} not found")


class ExceedsBalance(Exception):
    """Raised when a payment would push the paid sum past the transaction total."""

    def __init__(self, remaining):
        self.remaining = Decimal(remaining)
        super().__init__(
            f"Payment amount exceeds remaining balance of {self.remaining:.2f}"
        )


class PersistenceFailure(Exception):
    """Raised when an atomic write block is rolled back by the database."""

    def __init__(self, operation):
        self.operation = operation
        super().__init__(f"Failed to {operation}")
