"""
Dealer API - registration, proxy scans, wallet and reimbursement requests.
"""
from flask import Blueprint, request, jsonify, g

from ..middleware.auth import require_auth, require_dealer
from ..services.auth_service import register_dealer, validate_phone
from ..services.crediting import DealerActor
from ..services.redemption_service import RedemptionService
from ..services.wallet_service import WalletService, PARTY_DEALER
from ..utils.errors import bad_request, forbidden, from_exception
from ..utils.exceptions import RewardsError, AlreadyRedeemedError
from .scan import parse_scan_context

dealer_bp = Blueprint('dealer', __name__)


def _is_own_account(dealer_id: int) -> bool:
    return g.current_user['id'] == dealer_id


@dealer_bp.route('/register', methods=['POST'])
def register():
    """
    Register a dealer.

    Request body:
        name: string (required)
        phone: E.164 phone (required)
        gst: string (optional)
    """
    data = request.get_json(silent=True) or {}

    try:
        dealer = register_dealer(data.get('name'), data.get('phone'), data.get('gst'))
    except RewardsError as e:
        return from_exception(e)

    return jsonify(dealer.to_dict()), 201


@dealer_bp.route('/scan-proxy', methods=['POST'])
@require_auth
@require_dealer
def scan_proxy():
    """
    Redeem a coupon on behalf of a mason, or for the dealer.

    Request body:
        token: string (required)
        mason_phone: phone of the mason to credit
        cash_paid: bool, dealer paid the mason cash (with mason_phone)
        credit_to_dealer: bool, credit the dealer instead

    Exactly one of mason_phone / credit_to_dealer must be given.
    """
    data = request.get_json(silent=True) or {}

    token = data.get('token')
    if not token or not isinstance(token, str):
        return bad_request("Token is required")

    mason_phone = data.get('mason_phone')
    cash_paid = data.get('cash_paid', False)
    credit_to_dealer = data.get('credit_to_dealer', False)

    if not isinstance(cash_paid, bool) or not isinstance(credit_to_dealer, bool):
        return bad_request("cash_paid and credit_to_dealer must be booleans")
    if bool(mason_phone) == credit_to_dealer:
        return bad_request("Provide either mason_phone or credit_to_dealer")

    try:
        if mason_phone:
            validate_phone(mason_phone, 'mason_phone')
        actor = DealerActor(
            dealer_id=g.current_user['id'],
            mason_phone=mason_phone,
            cash_paid=cash_paid if mason_phone else False,
            credit_to_dealer=credit_to_dealer,
        )
        result = RedemptionService().redeem(token, actor, parse_scan_context(data))
    except AlreadyRedeemedError as e:
        return from_exception(e, success=False)
    except RewardsError as e:
        return from_exception(e)

    return jsonify({'success': True, 'points': result.points_credited})


@dealer_bp.route('/<int:dealer_id>/wallet', methods=['GET'])
@require_auth
@require_dealer
def get_wallet(dealer_id):
    """Dealer balance and the 50 most recent ledger entries."""
    if not _is_own_account(dealer_id):
        return forbidden()

    try:
        wallet = WalletService().wallet(dealer_id, PARTY_DEALER)
    except RewardsError as e:
        return from_exception(e)

    return jsonify({
        'balance': wallet['balance'],
        'transactions': wallet['transactions'],
    })


@dealer_bp.route('/<int:dealer_id>/reimburse', methods=['POST'])
@require_auth
@require_dealer
def reimburse(dealer_id):
    """
    Request a payout of `amount` from the dealer balance.

    Request body:
        amount: int >= 1
    """
    if not _is_own_account(dealer_id):
        return forbidden()

    data = request.get_json(silent=True) or {}

    try:
        payout = WalletService().request_withdrawal(dealer_id, PARTY_DEALER, data.get('amount'))
    except RewardsError as e:
        return from_exception(e)

    return jsonify({'success': True, 'payoutId': payout.id})
