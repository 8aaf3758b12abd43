"""Custom exceptions for the storefront."""
from __future__ import annotations


class StampShopException(Exception):
    """Base exception for all storefront errors."""

    def __init__(self, message: str, *args: object) -> None:
        super().__init__(message, *args)
        self.message = message


class ValidationException(StampShopException):
    """Input validation errors, keyed by field name."""

    def __init__(self, errors: dict[str, str], message: str = "Validation failed") -> None:
        super().__init__(message)
        self.errors = dict(errors)


class TransportException(StampShopException):
    """Network failure or non-success status from an external endpoint."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class PaymentGatewayException(TransportException):
    """Payment provider call failed."""

    pass


class NotificationException(TransportException):
    """Messaging provider call failed."""

    pass


class CartPersistenceException(StampShopException):
    """Stored cart could not be read or written."""

    pass


class OrderNotFoundException(StampShopException):
    """Archived order not found."""

    def __init__(self, reference: str) -> None:
        super().__init__(f"Order {reference} not found")
        self.reference = reference


class ConfigurationException(StampShopException):
    """Configuration errors."""

    pass
