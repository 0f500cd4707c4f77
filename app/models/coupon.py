"""
Batch and Coupon models.

A batch is provisioned once; its coupons are generated in bulk and are only
ever mutated by the redemption state machine (issued -> redeemed).
"""
from datetime import datetime
from enum import Enum
from ..extensions import db


class CouponStatus(str, Enum):
    ISSUED = 'issued'
    REDEEMED = 'redeemed'


class Batch(db.Model):
    """Group of coupons printed for one product SKU."""
    __tablename__ = 'batches'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200))
    sku = db.Column(db.String(100))
    points_per_coupon = db.Column(db.Integer, nullable=False, default=0)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    coupons = db.relationship('Coupon', backref='batch', lazy='dynamic')

    def __repr__(self):
        return f'<Batch {self.id} {self.sku}>'

    def to_dict(self, counts: dict = None):
        data = {
            'id': self.id,
            'name': self.name,
            'sku': self.sku,
            'points_per_coupon': self.points_per_coupon,
            'quantity': self.quantity,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
        if counts is not None:
            data.update(counts)
        return data


class Coupon(db.Model):
    """
    One QR-coded coupon.

    Invariant: status moves issued -> redeemed exactly once and never back.
    """
    __tablename__ = 'coupons'

    id = db.Column(db.Integer, primary_key=True)
    token = db.Column(db.String(128), unique=True, nullable=False, index=True)
    batch_id = db.Column(db.Integer, db.ForeignKey('batches.id'), nullable=False, index=True)
    points = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(20), nullable=False, default=CouponStatus.ISSUED.value)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    redeemed_at = db.Column(db.DateTime)

    @property
    def is_redeemable(self) -> bool:
        return self.status == CouponStatus.ISSUED.value

    def __repr__(self):
        return f'<Coupon {self.token} {self.status}>'

    def to_dict(self):
        return {
            'id': self.id,
            'token': self.token,
            'batch_id': self.batch_id,
            'points': self.points,
            'status': self.status,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'redeemed_at': self.redeemed_at.isoformat() if self.redeemed_at else None
        }
