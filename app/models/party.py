"""
Parties that hold a wallet: masons (users) and dealers.
"""
from datetime import datetime
from ..extensions import db


class User(db.Model):
    """
    Mason - the end user who scans coupons and withdraws points as cash.

    Created either on first OTP login or by a dealer proxy scan that names
    an unseen phone number.
    """
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    phone = db.Column(db.String(20), unique=True, nullable=True, index=True)
    name = db.Column(db.String(200))
    email = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    transactions = db.relationship('Transaction', backref='user', lazy='dynamic')

    def __repr__(self):
        return f'<User {self.id} {self.phone}>'

    def to_dict(self):
        return {
            'id': self.id,
            'phone': self.phone,
            'name': self.name,
            'email': self.email,
            'role': 'user',
            'created_at': self.created_at.isoformat() if self.created_at else None
        }


class Dealer(db.Model):
    """Dealer - scans on behalf of masons and can be credited directly."""
    __tablename__ = 'dealers'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    phone = db.Column(db.String(20), unique=True, nullable=False, index=True)
    gst = db.Column(db.String(50))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    transactions = db.relationship('DealerTransaction', backref='dealer', lazy='dynamic')

    def __repr__(self):
        return f'<Dealer {self.id} {self.name}>'

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'phone': self.phone,
            'gst': self.gst,
            'role': 'dealer',
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
