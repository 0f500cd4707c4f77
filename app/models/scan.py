"""
Scan audit record.
"""
from datetime import datetime
from ..extensions import db


class Scan(db.Model):
    """
    Immutable record of one successful redemption.

    Only successful redemptions are written; lost races and unknown tokens
    leave no row.
    """
    __tablename__ = 'scans'

    id = db.Column(db.Integer, primary_key=True)
    token = db.Column(db.String(128), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True, index=True)
    dealer_id = db.Column(db.Integer, db.ForeignKey('dealers.id'), nullable=True, index=True)

    # Device metadata, passed through from the client untouched
    device_id = db.Column(db.String(200))
    gps = db.Column(db.JSON)
    client_time = db.Column(db.DateTime)

    success = db.Column(db.Boolean, nullable=False, default=True)
    scanned_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    def __repr__(self):
        return f'<Scan {self.id} token={self.token}>'

    def to_dict(self):
        return {
            'id': self.id,
            'token': self.token,
            'user_id': self.user_id,
            'dealer_id': self.dealer_id,
            'device_id': self.device_id,
            'gps': self.gps,
            'client_time': self.client_time.isoformat() if self.client_time else None,
            'success': self.success,
            'scanned_at': self.scanned_at.isoformat() if self.scanned_at else None
        }
