"""
Coupon API - bulk generation and lookup.
"""
from flask import Blueprint, request, jsonify, Response

from ..middleware.auth import require_auth
from ..services.coupon_service import CouponService
from ..utils.errors import from_exception
from ..utils.exceptions import RewardsError

coupons_bp = Blueprint('coupons', __name__)


def _wants_token_list() -> bool:
    best = request.accept_mimetypes.best_match(['application/json', 'text/csv', 'text/plain'])
    return best in ('text/csv', 'text/plain')


@coupons_bp.route('/generate', methods=['POST'])
@require_auth
def generate():
    """
    Mint coupons for a batch.

    Request body:
        batch_id: int (required)
        quantity: int 1..10000 (required)
        points: int >= 1 (required)
        prefix: string (optional)

    Returns:
        201 JSON {success, batch_id, count, coupons}, or one token per line
        when the client accepts text/csv or text/plain
    """
    data = request.get_json(silent=True) or {}

    try:
        coupons = CouponService().generate_coupons(
            batch_id=data.get('batch_id'),
            quantity=data.get('quantity'),
            points=data.get('points'),
            prefix=data.get('prefix') or None,
        )
    except RewardsError as e:
        return from_exception(e)

    if _wants_token_list():
        mimetype = 'text/csv' if request.accept_mimetypes['text/csv'] else 'text/plain'
        return Response('\n'.join(c.token for c in coupons), status=201, mimetype=mimetype)

    return jsonify({
        'success': True,
        'batch_id': data.get('batch_id'),
        'count': len(coupons),
        'coupons': [
            {'token': c.token, 'batch_id': c.batch_id, 'points': c.points}
            for c in coupons
        ],
    }), 201


@coupons_bp.route('/<token>', methods=['GET'])
def get_coupon(token):
    """Coupon details by token."""
    try:
        coupon = CouponService().get_coupon(token)
    except RewardsError as e:
        return from_exception(e)

    return jsonify(coupon.to_dict())
