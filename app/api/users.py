"""
Mason wallet API.
"""
from flask import Blueprint, request, jsonify, g

from ..middleware.auth import require_auth
from ..services.auth_service import ROLE_USER
from ..services.wallet_service import WalletService, PARTY_MASON
from ..utils.errors import bad_request, forbidden, from_exception
from ..utils.exceptions import RewardsError

users_bp = Blueprint('users', __name__)


def _check_owner(user_id: int):
    user = g.current_user
    if user['role'] != ROLE_USER or user['id'] != user_id:
        return forbidden("You can only access your own wallet")
    return None


@users_bp.route('/<int:user_id>/wallet', methods=['GET'])
@require_auth
def get_wallet(user_id):
    """
    Current points for the calling mason.

    Returns:
        {user_id, points, rupeeEquivalent, transactions}
    """
    denied = _check_owner(user_id)
    if denied:
        return denied

    try:
        wallet = WalletService().wallet(user_id, PARTY_MASON)
    except RewardsError as e:
        return from_exception(e)

    return jsonify({
        'user_id': user_id,
        'points': wallet['points'],
        'rupeeEquivalent': wallet['rupee_equivalent'],
        'transactions': wallet['transactions'],
    })


@users_bp.route('/<int:user_id>/redeem', methods=['POST'])
@require_auth
def redeem_points(user_id):
    """
    Request a cash payout of wallet points.

    Request body:
        amount: int >= 1
        method: string (e.g. 'upi', 'bank')
        account: string (UPI id or account number)

    Returns:
        202 {payout_id, status}
    """
    denied = _check_owner(user_id)
    if denied:
        return denied

    data = request.get_json(silent=True) or {}
    method = data.get('method')
    account = data.get('account')

    if not method or not isinstance(method, str):
        return bad_request("Method is required")
    if not account or not isinstance(account, str):
        return bad_request("Account is required")

    try:
        payout = WalletService().request_withdrawal(
            user_id, PARTY_MASON, data.get('amount'), method=method, account=account
        )
    except RewardsError as e:
        return from_exception(e)

    return jsonify({
        'payout_id': payout.id,
        'status': payout.status,
    }), 202
