"""
Utility modules for the rewards backend.
"""
from .logging_config import setup_logging, get_logger
from .errors import (
    ErrorCode,
    error_response,
    from_exception,
    status_for,
    bad_request,
    unauthorized,
    forbidden,
    not_found,
    internal_error
)
from .exceptions import (
    RewardsError,
    NotFoundError,
    CouponNotFoundError,
    BatchNotFoundError,
    PayoutNotFoundError,
    PartyNotFoundError,
    AlreadyRedeemedError,
    ValidationError,
    InsufficientBalanceError,
    DuplicateError,
    AuthorizationError,
    InternalError,
    RedemptionInternalError
)
from .locking import acquire_row_lock, configure_engine
