"""Domain errors raised by the catalog, cart and order engines.

The HTTP layer maps each of these to a status code in ``app.main``; the
engines themselves know nothing about HTTP.
"""


class ShopError(Exception):
    """Base class for every error the engines raise on purpose."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ShopError):
    """Input is malformed or out of range (400)."""


class NotFoundError(ShopError):
    """A referenced product, cart item, order or lookup entity is absent (404)."""


class EmptyCartError(ShopError):
    """Checkout was attempted with no active cart or a cart without items (400)."""

    def __init__(self, message: str = "Cart is empty"):
        super().__init__(message)


class StoreError(ShopError):
    """The backing store failed; detail is logged, never sent to the client (500)."""

    def __init__(self, message: str = "Data store failure"):
        super().__init__(message)


class ConflictError(ShopError):
    """A uniqueness conflict that could not be resolved by re-reading (409)."""
