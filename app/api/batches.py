"""
Batch API.
"""
from flask import Blueprint, request, jsonify

from ..middleware.auth import require_auth
from ..services.coupon_service import CouponService
from ..utils.errors import from_exception
from ..utils.exceptions import RewardsError

batches_bp = Blueprint('batches', __name__)


@batches_bp.route('', methods=['POST'])
@require_auth
def create_batch():
    """
    Create an empty batch; coupons are minted via /coupons/generate.

    Request body:
        name: string (required)
        sku: string (required)
    """
    data = request.get_json(silent=True) or {}

    try:
        batch = CouponService().create_batch(data.get('name'), data.get('sku'))
    except RewardsError as e:
        return from_exception(e)

    return jsonify({
        'id': batch.id,
        'name': batch.name,
        'sku': batch.sku,
        'created_at': batch.created_at.isoformat() if batch.created_at else None,
    }), 201
