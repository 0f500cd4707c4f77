"""
Authentication API endpoints.
Phone OTP login for masons and dealers.
"""
from flask import Blueprint, request, jsonify, current_app

from ..extensions import limiter
from ..services.auth_service import request_otp, verify_otp
from ..utils.errors import from_exception
from ..utils.exceptions import RewardsError

auth_bp = Blueprint('auth', __name__)


def _otp_phone_key() -> str:
    """Rate limit OTP requests per phone number rather than per client."""
    data = request.get_json(silent=True) or {}
    phone = data.get('phone')
    return f"otp:{phone}" if isinstance(phone, str) and phone else f"otp-ip:{request.remote_addr}"


@auth_bp.route('/otp', methods=['POST'])
@limiter.limit(lambda: current_app.config['OTP_RATE_LIMIT'], key_func=_otp_phone_key)
def send_otp():
    """
    Issue a login OTP for a phone number.

    Request body:
        phone: E.164 phone number

    Returns:
        202 {message}
    """
    data = request.get_json(silent=True) or {}

    try:
        request_otp(data.get('phone'))
    except RewardsError as e:
        return from_exception(e)

    return jsonify({'message': 'OTP sent'}), 202


@auth_bp.route('/verify', methods=['POST'])
def verify():
    """
    Exchange phone + OTP for a bearer token.

    Request body:
        phone: string
        otp: 6-digit string

    Returns:
        {token, user: {id, phone, name, role, created_at}}
    """
    data = request.get_json(silent=True) or {}

    try:
        result = verify_otp(data.get('phone'), data.get('otp'))
    except RewardsError as e:
        return from_exception(e)

    return jsonify(result)
