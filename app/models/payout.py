"""
Payout (withdrawal request) model.
"""
from datetime import datetime
from enum import Enum
from ..extensions import db


class PayoutStatus(str, Enum):
    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'


class PayoutType(str, Enum):
    USER = 'user'
    DEALER = 'dealer'


class Payout(db.Model):
    """
    Withdrawal request from a mason or dealer.

    Created pending; an admin moves it to approved or rejected, both
    terminal. Funds are reserved in the ledger at request time.
    """
    __tablename__ = 'payouts'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True, index=True)
    dealer_id = db.Column(db.Integer, db.ForeignKey('dealers.id'), nullable=True, index=True)
    type = db.Column(db.String(20), nullable=False, default=PayoutType.USER.value)
    amount = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(20), nullable=False, default=PayoutStatus.PENDING.value, index=True)

    # Payment destination supplied by the requester
    method = db.Column(db.String(50))
    account = db.Column(db.String(200))

    # Settlement reference (approval) or rejection notes
    reference = db.Column(db.String(500))

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = db.relationship('User', backref=db.backref('payouts', lazy='dynamic'))
    dealer = db.relationship('Dealer', backref=db.backref('payouts', lazy='dynamic'))

    @property
    def is_pending(self) -> bool:
        return self.status == PayoutStatus.PENDING.value

    def __repr__(self):
        return f'<Payout {self.id}: {self.type} {self.amount} {self.status}>'

    def to_dict(self):
        data = {
            'id': self.id,
            'user_id': self.user_id,
            'dealer_id': self.dealer_id,
            'type': self.type,
            'amount': self.amount,
            'status': self.status,
            'method': self.method,
            'account': self.account,
            'reference': self.reference,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }
        if self.user_id and self.user:
            data['user_phone'] = self.user.phone
        if self.dealer_id and self.dealer:
            data['dealer_name'] = self.dealer.name
            data['dealer_phone'] = self.dealer.phone
            data['dealer_gst'] = self.dealer.gst
        return data
