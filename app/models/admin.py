"""
Admin back-office models: audit log and flagged events.
"""
from datetime import datetime
from ..extensions import db


class AdminAudit(db.Model):
    """Append-only log of admin actions."""
    __tablename__ = 'admin_audit'

    id = db.Column(db.Integer, primary_key=True)
    admin_identifier = db.Column(db.String(100), nullable=False)  # masked admin key
    action = db.Column(db.String(100), nullable=False)
    payload = db.Column(db.JSON, default=dict)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    def __repr__(self):
        return f'<AdminAudit {self.action}>'

    def to_dict(self):
        return {
            'id': self.id,
            'admin_identifier': self.admin_identifier,
            'action': self.action,
            'payload': self.payload,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }


class FlaggedEvent(db.Model):
    """Suspicious scan activity queued for admin review."""
    __tablename__ = 'flagged_events'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    batch_id = db.Column(db.Integer, db.ForeignKey('batches.id'), nullable=True, index=True)
    token = db.Column(db.String(128))
    reason = db.Column(db.String(500))
    risk_score = db.Column(db.Integer, default=0)
    status = db.Column(db.String(20), nullable=False, default='open', index=True)
    resolved_by = db.Column(db.String(100))
    resolved_at = db.Column(db.DateTime)
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    user = db.relationship('User')
    batch = db.relationship('Batch')

    def __repr__(self):
        return f'<FlaggedEvent {self.id} {self.status}>'

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'user_phone': self.user.phone if self.user else None,
            'batch_id': self.batch_id,
            'batch_name': self.batch.name if self.batch else None,
            'token': self.token,
            'reason': self.reason,
            'risk_score': self.risk_score,
            'status': self.status,
            'resolved_by': self.resolved_by,
            'resolved_at': self.resolved_at.isoformat() if self.resolved_at else None,
            'notes': self.notes,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
