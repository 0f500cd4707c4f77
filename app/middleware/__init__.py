"""
Middleware package for the rewards backend.
"""
from .auth import require_auth, require_dealer, require_admin, mask_admin_key
from .request_id import init_request_id_tracking

__all__ = [
    'require_auth',
    'require_dealer',
    'require_admin',
    'mask_admin_key',
    'init_request_id_tracking',
]
