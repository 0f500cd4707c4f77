"""
Mason scan API.

POST /scan redeems a coupon token for the authenticated mason.
"""
from datetime import datetime
from flask import Blueprint, request, jsonify, g

from ..middleware.auth import require_auth
from ..services.auth_service import ROLE_USER
from ..services.crediting import MasonActor
from ..services.redemption_service import RedemptionService, ScanContext
from ..services.wallet_service import WalletService, PARTY_MASON
from ..utils.errors import bad_request, forbidden, from_exception
from ..utils.exceptions import RewardsError, AlreadyRedeemedError, ValidationError

scan_bp = Blueprint('scan', __name__)


def parse_scan_context(data: dict) -> ScanContext:
    """Device metadata from a scan request body."""
    device_id = data.get('device_id')
    if device_id is not None and not isinstance(device_id, str):
        raise ValidationError("device_id must be a string", "device_id")

    gps = data.get('gps')
    if gps is not None and not isinstance(gps, dict):
        raise ValidationError("gps must be an object", "gps")

    client_time = data.get('client_time')
    if client_time is not None:
        try:
            client_time = datetime.fromisoformat(str(client_time).replace('Z', '+00:00')).replace(tzinfo=None)
        except ValueError:
            raise ValidationError("client_time must be an ISO 8601 timestamp", "client_time")

    return ScanContext(device_id=device_id, gps=gps, client_time=client_time)


@scan_bp.route('', methods=['POST'])
@require_auth
def scan_token():
    """
    Redeem a coupon for the calling mason.

    Request body:
        token: string (required)
        device_id: string (optional)
        gps: object (optional)
        client_time: ISO 8601 string (optional)

    Returns:
        200 {success, pointsCredited, newWalletPoints}
        404 unknown token, 409 already redeemed
    """
    data = request.get_json(silent=True) or {}
    user = g.current_user

    if user['role'] != ROLE_USER:
        return forbidden("Dealers must use /dealer/scan-proxy")

    token = data.get('token')
    if not token or not isinstance(token, str):
        return bad_request("Token is required")

    try:
        context = parse_scan_context(data)
        result = RedemptionService().redeem(token, MasonActor(user_id=user['id']), context)
    except AlreadyRedeemedError as e:
        return from_exception(e, success=False)
    except RewardsError as e:
        return from_exception(e)

    return jsonify({
        'success': True,
        'pointsCredited': result.points_credited,
        'newWalletPoints': WalletService().balance(user['id'], PARTY_MASON),
    })
