"""
Admin API - payouts, batches, flagged events and the audit log.

Every route requires the X-Admin-Key header and is rate limited per client
address (ADMIN_RATE_LIMIT).
"""
from flask import Blueprint, request, jsonify, g, current_app

from ..extensions import limiter
from ..middleware.auth import require_admin
from ..models import PayoutType
from ..services import admin_service
from ..services.admin_service import FlaggedEventFilter
from ..services.coupon_service import CouponService
from ..services.payout_service import PayoutService
from ..utils.errors import bad_request, from_exception
from ..utils.exceptions import RewardsError

admin_bp = Blueprint('admin', __name__)

limiter.limit(lambda: current_app.config['ADMIN_RATE_LIMIT'])(admin_bp)


# ==================== Flagged events ====================

@admin_bp.route('/flagged', methods=['GET'])
@require_admin
def list_flagged():
    """
    List flagged events.

    Query params:
    - page, limit: pagination (default 1, 20)
    - batch_id: filter by batch
    - min_risk, max_risk: risk score bounds
    - status: default 'open', 'all' for every status
    - start_date, end_date: ISO dates on created_at
    """
    try:
        result = admin_service.list_flagged(FlaggedEventFilter.from_args(request.args))
    except RewardsError as e:
        return from_exception(e)

    return jsonify(result)


@admin_bp.route('/flagged/<int:event_id>/resolve', methods=['POST'])
@require_admin
def resolve_flagged(event_id):
    data = request.get_json(silent=True) or {}

    try:
        event = admin_service.resolve_flagged(
            event_id, data.get('action'), data.get('notes'), g.admin_identifier
        )
    except RewardsError as e:
        return from_exception(e)

    return jsonify({'message': 'Flagged event resolved', 'event': event.to_dict()})


# ==================== Payouts ====================

@admin_bp.route('/payouts', methods=['GET'])
@require_admin
def list_payouts():
    """List payouts, newest first. Query params: status."""
    payouts = PayoutService().list_payouts(status=request.args.get('status'))
    return jsonify({'payouts': [p.to_dict() for p in payouts]})


@admin_bp.route('/payouts/<int:payout_id>/approve', methods=['POST'])
@require_admin
def approve_payout(payout_id):
    """
    Approve a pending payout.

    Request body:
        reference: settlement reference (required)
    """
    data = request.get_json(silent=True) or {}
    if not data.get('reference'):
        return bad_request("reference is required")

    try:
        payout = PayoutService().approve(payout_id, data['reference'], g.admin_identifier)
    except RewardsError as e:
        return from_exception(e)

    return jsonify({'message': 'Payout approved', 'payout': payout.to_dict()})


@admin_bp.route('/payouts/<int:payout_id>/reject', methods=['POST'])
@require_admin
def reject_payout(payout_id):
    """
    Reject a pending payout; the reserved amount is returned to the wallet.

    Request body:
        notes: reason (required)
    """
    data = request.get_json(silent=True) or {}
    if not data.get('notes'):
        return bad_request("notes are required")

    try:
        payout = PayoutService().reject(payout_id, data['notes'], g.admin_identifier)
    except RewardsError as e:
        return from_exception(e)

    return jsonify({'message': 'Payout rejected', 'payout': payout.to_dict()})


@admin_bp.route('/dealer-payouts', methods=['GET'])
@require_admin
def list_dealer_payouts():
    payouts = PayoutService().list_payouts(
        status=request.args.get('status'),
        payout_type=PayoutType.DEALER.value,
    )
    return jsonify({'payouts': [p.to_dict() for p in payouts]})


@admin_bp.route('/dealer-payouts/<int:payout_id>/approve', methods=['POST'])
@require_admin
def approve_dealer_payout(payout_id):
    """Approve a pending dealer reimbursement. Body: reference (required)."""
    data = request.get_json(silent=True) or {}
    if not data.get('reference'):
        return bad_request("reference is required")

    try:
        payout = PayoutService().approve(
            payout_id, data['reference'], g.admin_identifier, payout_type=PayoutType.DEALER.value
        )
    except RewardsError as e:
        return from_exception(e)

    return jsonify({'message': 'Payout approved', 'payout': payout.to_dict()})


# ==================== Batches ====================

@admin_bp.route('/batches', methods=['GET'])
@require_admin
def list_batches():
    """All batches with issued / redeemed / pending coupon counts."""
    return jsonify({'batches': CouponService().list_batches_with_counts()})


@admin_bp.route('/batch', methods=['POST'])
@require_admin
def create_batch():
    """
    Create a batch.

    Request body:
        name: string (required)
        sku: string (required)
        points_per_scan: int >= 1 (required)
        quantity: int (optional, planned print run)
    """
    data = request.get_json(silent=True) or {}
    name = data.get('name')
    sku = data.get('sku')
    points = data.get('points_per_scan')
    quantity = data.get('quantity') or 0

    if not name or not sku or not points:
        return bad_request("name, sku, and points_per_scan are required")
    if not isinstance(points, int) or isinstance(points, bool) or points < 1:
        return bad_request("points_per_scan must be a positive integer")
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 0:
        return bad_request("quantity must be a non-negative integer")

    try:
        batch = CouponService().create_batch(name, sku, points_per_coupon=points, quantity=quantity)
    except RewardsError as e:
        return from_exception(e)

    admin_service.write_audit(g.admin_identifier, 'batch_created', {
        'batchId': batch.id,
        'name': name,
        'sku': sku,
        'pointsPerScan': points,
    })

    return jsonify({'message': 'Batch created', 'batch': batch.to_dict()}), 201


# ==================== Audit ====================

@admin_bp.route('/audit', methods=['GET'])
@require_admin
def list_audit():
    """Most recent admin actions. Query params: limit (default 50)."""
    limit = request.args.get('limit', admin_service.DEFAULT_AUDIT_LIMIT, type=int)
    entries = admin_service.list_audit(limit)
    return jsonify({'audit_logs': [e.to_dict() for e in entries]})
