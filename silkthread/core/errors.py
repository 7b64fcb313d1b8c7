# silkthread/core/errors.py
"""
Domain errors for the cart.

These never carry HTTP semantics; services translate them into
HTTPException at the API edge.
"""


class CartError(Exception):
    """Base class for every error raised by the cart layer."""


class ValidationError(CartError):
    """
    A cart operation was called with arguments that violate one of its
    preconditions. The cart state is left untouched.

    Attributes:
        precondition: short machine-readable name, e.g. "quantity>=1".
    """

    def __init__(self, precondition: str, message: str | None = None):
        self.precondition = precondition
        super().__init__(message or f"precondition violated: {precondition}")


class CartStoreError(CartError):
    """Reading or writing the persisted cart failed."""
