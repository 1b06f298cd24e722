"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth
  2xxx: Inventory / product
  3xxx: Cart
  4xxx: Purchase
  9xxx: System

Each error also derives from one of the kind bases (NotFoundError,
UnavailableError, SelfPurchaseError, ConflictError, AuthorizationError,
TransientError) so callers can branch on the kind without caring about codes.
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- Kinds ---

class NotFoundError(AppError):
    """Referenced entity does not exist (or is not visible to the caller)."""


class UnavailableError(AppError):
    """Product exists but can no longer be purchased."""


class SelfPurchaseError(AppError):
    """Buyer and seller are the same user."""


class ConflictError(AppError):
    """Lost a race on the availability compare-and-set."""


class AuthorizationError(AppError):
    """Caller does not own the resource."""


class TransientError(AppError):
    """Storage I/O failed or timed out; safe for the caller to retry."""


# --- 1xxx: Auth ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Invalid or expired token", 401)


# --- 2xxx: Inventory ---

class ProductNotFoundError(NotFoundError):
    def __init__(self, product_id: str) -> None:
        super().__init__(2001, f"Product not found: {product_id}", 404)


class ProductUnavailableError(UnavailableError):
    def __init__(self, product_id: str) -> None:
        super().__init__(2002, f"Product is no longer available: {product_id}", 409)


class AvailabilityConflictError(ConflictError):
    def __init__(self, product_id: str) -> None:
        super().__init__(
            2003,
            f"Product is no longer available: {product_id} was sold to another buyer",
            409,
        )


class AvailabilityTransitionError(AppError):
    def __init__(self, product_id: str) -> None:
        super().__init__(
            2004,
            f"Product {product_id} cannot become available again; create a new listing",
            422,
        )


class ProductNotOwnedError(AuthorizationError):
    def __init__(self, product_id: str) -> None:
        super().__init__(2005, f"Not authorized to modify product {product_id}", 403)


class InvalidPriceError(AppError):
    def __init__(self, price_cents: int) -> None:
        super().__init__(2006, f"Price must be non-negative, got {price_cents} cents", 422)


# --- 3xxx: Cart ---

class CartEntryNotFoundError(NotFoundError):
    def __init__(self, entry_id: str) -> None:
        super().__init__(3001, f"Cart entry not found: {entry_id}", 404)


class CartEntryNotOwnedError(NotFoundError, AuthorizationError):
    """Entry exists but belongs to another user.

    Reported as 404 with the same message as a missing entry so other users'
    entry ids are not disclosed.
    """

    def __init__(self, entry_id: str) -> None:
        AppError.__init__(self, 3002, f"Cart entry not found: {entry_id}", 404)


class InvalidQuantityError(AppError):
    def __init__(self, quantity: int) -> None:
        super().__init__(3003, f"Quantity must be a positive integer, got {quantity}", 422)


class SelfPurchaseInCartError(SelfPurchaseError):
    def __init__(self) -> None:
        super().__init__(3004, "Cannot add your own product to cart", 422)


# --- 4xxx: Purchase ---

class SelfPurchaseAttemptError(SelfPurchaseError):
    def __init__(self) -> None:
        super().__init__(4001, "You cannot purchase your own product", 422)


class TransactionNotFoundError(NotFoundError):
    def __init__(self, transaction_id: str) -> None:
        super().__init__(4004, f"Transaction not found: {transaction_id}", 404)


class TransactionStateError(AppError):
    def __init__(self, transaction_id: str, status: str) -> None:
        super().__init__(
            4005, f"Transaction {transaction_id} in status {status} cannot change", 500
        )


# --- 9xxx: System ---

class RateLimitError(AppError):
    def __init__(self) -> None:
        super().__init__(9001, "Rate limit exceeded", 429)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class StorageUnavailableError(TransientError):
    def __init__(self, detail: str = "Storage temporarily unavailable") -> None:
        super().__init__(9003, detail, 503)
