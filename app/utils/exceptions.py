"""
Custom exceptions for the rewards core.

Services raise these; the API layer maps them to HTTP status codes
(see app.utils.errors.status_for).
"""


class RewardsError(Exception):
    """Base exception for all rewards business logic errors."""

    def __init__(self, message: str, code: str = "REWARDS_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class NotFoundError(RewardsError):
    """Resource not found."""

    def __init__(self, resource: str, identifier=None):
        self.identifier = identifier
        message = f"{resource} not found"
        if identifier is not None:
            message = f"{resource} {identifier} not found"
        super().__init__(message, f"{resource.upper().replace(' ', '_')}_NOT_FOUND")


class CouponNotFoundError(NotFoundError):
    """No coupon carries the scanned token."""

    def __init__(self, token: str):
        self.token = token
        super().__init__("Token", token)


class BatchNotFoundError(NotFoundError):

    def __init__(self, identifier=None):
        super().__init__("Batch", identifier)


class PayoutNotFoundError(NotFoundError):
    """Payout missing, of the wrong type, or no longer pending."""

    def __init__(self, identifier=None):
        super().__init__("Payout", identifier)


class PartyNotFoundError(NotFoundError):
    """Mason or dealer not found."""

    def __init__(self, party_type: str, identifier=None):
        self.party_type = party_type
        super().__init__(party_type.capitalize(), identifier)


class AlreadyRedeemedError(RewardsError):
    """Coupon token was already redeemed (double-spend guard)."""

    def __init__(self, token: str):
        self.token = token
        super().__init__("Token already redeemed", "ALREADY_REDEEMED")


class ValidationError(RewardsError):
    """Invalid input data."""

    def __init__(self, message: str, field: str = None):
        self.field = field
        code = f"INVALID_{field.upper()}" if field else "VALIDATION_ERROR"
        super().__init__(message, code)


class InsufficientBalanceError(RewardsError):
    """Withdrawal exceeds the party's current balance."""

    def __init__(self, current: int, required: int, party_id=None):
        self.current = current
        self.required = required
        self.party_id = party_id
        message = f"Insufficient balance. Current: {current}, Required: {required}"
        super().__init__(message, "INSUFFICIENT_BALANCE")


class DuplicateError(RewardsError):
    """Resource already exists."""

    def __init__(self, resource: str, identifier=None):
        message = f"{resource} already exists"
        if identifier:
            message = f"{resource} with {identifier} already exists"
        super().__init__(message, "DUPLICATE_ENTRY")


class AuthorizationError(RewardsError):
    """Caller not authenticated or not allowed."""

    def __init__(self, message: str = "Not authorized for this operation", status_code: int = 403):
        self.status_code = status_code
        super().__init__(message, "AUTHORIZATION_ERROR")


class InternalError(RewardsError):
    """Unexpected storage or transaction failure; the transaction was rolled back."""

    def __init__(self, message: str = "Internal server error", original_error: Exception = None):
        self.original_error = original_error
        super().__init__(message, "INTERNAL_ERROR")


class RedemptionInternalError(InternalError):
    """Redemption failed after the lock was taken; nothing was committed."""

    def __init__(self, token: str, original_error: Exception = None):
        self.token = token
        super().__init__(f"Redemption of token {token} failed", original_error)
