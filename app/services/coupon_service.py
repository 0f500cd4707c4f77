"""
Batch provisioning and bulk coupon generation.
"""
import logging
import uuid
from typing import List, Dict, Any

from ..extensions import db
from ..models import Batch, Coupon, CouponStatus
from ..utils.exceptions import BatchNotFoundError, CouponNotFoundError, ValidationError, InternalError

logger = logging.getLogger(__name__)

MAX_COUPONS_PER_CALL = 10000


class CouponService:
    """
    Create batches and mint their coupons.

    Usage:
        service = CouponService()
        batch = service.create_batch('Cement 50kg', 'CEM-50', points_per_coupon=10)
        coupons = service.generate_coupons(batch.id, quantity=500, points=10, prefix='CEM')
    """

    def create_batch(self, name: str, sku: str, points_per_coupon: int = 0, quantity: int = 0) -> Batch:
        if not name:
            raise ValidationError("Name is required", "name")
        if not sku:
            raise ValidationError("SKU is required", "sku")
        if points_per_coupon is None or points_per_coupon < 0:
            raise ValidationError("points_per_coupon must be a non-negative integer", "points_per_coupon")

        batch = Batch(
            name=name,
            sku=sku,
            points_per_coupon=points_per_coupon,
            quantity=quantity or 0,
        )
        db.session.add(batch)
        db.session.commit()

        logger.info(f"Batch {batch.id} created: {name} ({sku}), {points_per_coupon} pts/coupon")
        return batch

    def generate_coupons(self, batch_id: int, quantity: int, points: int, prefix: str = None) -> List[Coupon]:
        """
        Insert `quantity` issued coupons worth `points` each.

        Tokens are random UUIDs, optionally namespaced as '<prefix>-<uuid>'.

        Raises:
            ValidationError: quantity outside 1..10000 or points < 1
            BatchNotFoundError: No such batch
        """
        if not _is_int(quantity) or not 1 <= quantity <= MAX_COUPONS_PER_CALL:
            raise ValidationError(f"Quantity must be between 1 and {MAX_COUPONS_PER_CALL}", "quantity")
        if not _is_int(points) or points < 1:
            raise ValidationError("Points must be a positive integer", "points")

        batch = db.session.get(Batch, batch_id)
        if batch is None:
            raise BatchNotFoundError(batch_id)

        coupons = [
            Coupon(
                token=f"{prefix}-{uuid.uuid4()}" if prefix else str(uuid.uuid4()),
                batch_id=batch.id,
                points=points,
                status=CouponStatus.ISSUED.value,
            )
            for _ in range(quantity)
        ]

        try:
            db.session.add_all(coupons)
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            logger.exception(f"Coupon generation for batch {batch_id} failed: {e}")
            raise InternalError(original_error=e) from e

        logger.info(f"Generated {quantity} coupons for batch {batch.id} at {points} pts")
        return coupons

    def get_coupon(self, token: str) -> Coupon:
        coupon = Coupon.query.filter_by(token=token).first()
        if coupon is None:
            raise CouponNotFoundError(token)
        return coupon

    def list_batches_with_counts(self) -> List[Dict[str, Any]]:
        """All batches, newest first, with issued/redeemed/pending coupon counts."""
        redeemed = db.func.sum(db.case((Coupon.status == CouponStatus.REDEEMED.value, 1), else_=0))
        pending = db.func.sum(db.case((Coupon.status == CouponStatus.ISSUED.value, 1), else_=0))

        rows = (
            db.session.query(
                Batch,
                db.func.count(Coupon.id),
                db.func.coalesce(redeemed, 0),
                db.func.coalesce(pending, 0),
            )
            .outerjoin(Coupon, Coupon.batch_id == Batch.id)
            .group_by(Batch.id)
            .order_by(Batch.created_at.desc(), Batch.id.desc())
            .all()
        )

        return [
            batch.to_dict(counts={
                'issued': int(issued or 0),
                'redeemed': int(redeemed_count or 0),
                'pending': int(pending_count or 0),
            })
            for batch, issued, redeemed_count, pending_count in rows
        ]


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
