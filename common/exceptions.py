"""
Storefront - Custom Exceptions
================================
Business-level exceptions that can be caught and converted to HTTP responses.
Each carries a stable `code` for API clients and the HTTP status it maps to.
"""

from fastapi import status


class StorefrontError(Exception):
    """Base exception for all business logic errors."""
    code = "INTERNAL_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST
    retryable = False

    def __init__(self, message: str = "An internal error occurred."):
        self.message = message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "retryable": self.retryable,
        }


class AuthenticationError(StorefrontError):
    """Raised when authentication fails."""
    code = "UNAUTHENTICATED"
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Authentication required."):
        super().__init__(message)


class AuthorizationError(StorefrontError):
    """Raised when user lacks permission."""
    code = "FORBIDDEN"
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Administrator access required."):
        super().__init__(message)


class NotFoundError(StorefrontError):
    """
    Raised when a requested resource doesn't exist.
    Also used when it exists but belongs to someone else, so ownership is not leaked.
    """
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(StorefrontError):
    """Raised for unique constraint violations and guarded deletes."""
    code = "CONFLICT"
    status_code = status.HTTP_409_CONFLICT


class ValidationError(StorefrontError):
    """Raised for malformed input that slipped past request validation."""
    code = "VALIDATION_FAILED"
    status_code = 422


class EmptyCartError(StorefrontError):
    """Raised when an order is requested from an empty cart."""
    code = "EMPTY_CART"

    def __init__(self):
        super().__init__("Cart is empty.")


class InsufficientStockError(StorefrontError):
    """Raised when product stock is not enough for the requested quantity."""
    code = "INSUFFICIENT_STOCK"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, product_name: str, available: int, requested: int):
        self.product_name = product_name
        self.available = available
        self.requested = requested
        super().__init__(
            f'Insufficient stock for "{product_name}". '
            f"Available: {available}, Requested: {requested}"
        )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update(product=self.product_name, available=self.available, requested=self.requested)
        return data


class InvalidTransitionError(StorefrontError):
    """Raised when an order status change would leave a terminal state."""
    code = "INVALID_TRANSITION"
    status_code = status.HTTP_409_CONFLICT


class TransactionConflictError(StorefrontError):
    """Raised when the database aborted the transaction due to concurrent writers."""
    code = "TRANSACTION_CONFLICT"
    status_code = status.HTTP_409_CONFLICT
    retryable = True

    def __init__(self, message: str = "The operation conflicted with a concurrent update. Please retry."):
        super().__init__(message)

