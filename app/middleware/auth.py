"""
Authentication decorators.

- require_auth:   Bearer JWT issued by /auth/verify; sets g.current_user
- require_dealer: role check, use after require_auth
- require_admin:  X-Admin-Key header; sets g.admin_identifier (masked key)
"""
import hmac
import logging
from functools import wraps
from flask import request, g, current_app

from ..services.auth_service import decode_token, ROLE_DEALER
from ..utils.errors import unauthorized, forbidden, error_response, ErrorCode
from ..utils.exceptions import AuthorizationError

logger = logging.getLogger(__name__)


def mask_admin_key(key: str) -> str:
    """Keep the first 8 characters of an admin key for audit trails."""
    return f"{key[:8]}..." if key else 'masked'


def get_bearer_token() -> str | None:
    auth_header = request.headers.get('Authorization', '')
    if not auth_header.startswith('Bearer '):
        return None
    return auth_header.split(' ', 1)[1].strip() or None


def require_auth(f):
    """
    Decorator to require a valid bearer token.

    Sets g.current_user = {'id': int, 'phone': str, 'role': 'user' | 'dealer'}.

    Usage:
        @require_auth
        def my_endpoint():
            user_id = g.current_user['id']
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = get_bearer_token()
        if not token:
            return unauthorized("No token provided")

        try:
            g.current_user = decode_token(token)
        except AuthorizationError as e:
            return unauthorized(e.message, ErrorCode.INVALID_TOKEN)

        return f(*args, **kwargs)

    return decorated_function


def require_dealer(f):
    """Restrict an endpoint to dealers. Must be used after @require_auth."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = getattr(g, 'current_user', None)
        if not user:
            return unauthorized()
        if user.get('role') != ROLE_DEALER:
            return forbidden("Access denied. Dealers only.")
        return f(*args, **kwargs)

    return decorated_function


def require_admin(f):
    """
    Decorator to require the admin API key.

    Usage:
        @require_admin
        def my_admin_endpoint():
            admin = g.admin_identifier
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        provided = request.headers.get('X-Admin-Key', '')
        expected = current_app.config.get('ADMIN_API_KEY') or ''

        if not provided or not expected or not hmac.compare_digest(provided, expected):
            logger.warning(f"Rejected admin request to {request.path} from {request.remote_addr}")
            return error_response("Invalid admin key", ErrorCode.AUTH_REQUIRED, 401, log_error=False)

        g.admin_identifier = mask_admin_key(provided)
        return f(*args, **kwargs)

    return decorated_function
