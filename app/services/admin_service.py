"""
Admin back-office: audit log and flagged events.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Dict, Any, List

from ..extensions import db
from ..models import AdminAudit, FlaggedEvent
from ..utils.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

FLAG_RESOLVED = 'resolved'

DEFAULT_AUDIT_LIMIT = 50
MAX_PAGE_SIZE = 100


def write_audit(admin_identifier: str, action: str, payload: Dict[str, Any] = None) -> Optional[AdminAudit]:
    """
    Append an admin audit row in its own transaction.

    Failures are logged and swallowed: the admin action already committed.
    """
    try:
        entry = AdminAudit(
            admin_identifier=admin_identifier or 'unknown',
            action=action,
            payload=payload or {},
        )
        db.session.add(entry)
        db.session.commit()
        return entry
    except Exception as e:
        db.session.rollback()
        logger.error(f"Failed to write audit log for {action}: {e}")
        return None


def list_audit(limit: int = DEFAULT_AUDIT_LIMIT) -> List[AdminAudit]:
    limit = max(1, min(limit or DEFAULT_AUDIT_LIMIT, 1000))
    return (
        AdminAudit.query
        .order_by(AdminAudit.created_at.desc(), AdminAudit.id.desc())
        .limit(limit)
        .all()
    )


@dataclass
class FlaggedEventFilter:
    """Query parameters for the flagged-event listing."""
    page: int = 1
    limit: int = 20
    batch_id: Optional[int] = None
    min_risk: Optional[int] = None
    max_risk: Optional[int] = None
    status: Optional[str] = 'open'
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @classmethod
    def from_args(cls, args) -> 'FlaggedEventFilter':
        """Build from request.args; malformed values raise ValidationError."""
        def _int(name, default=None):
            value = args.get(name)
            if value in (None, ''):
                return default
            try:
                return int(value)
            except (TypeError, ValueError):
                raise ValidationError(f"{name} must be an integer", name)

        def _date(name):
            value = args.get(name)
            if not value:
                return None
            try:
                return datetime.fromisoformat(value.replace('Z', '+00:00')).replace(tzinfo=None)
            except ValueError:
                raise ValidationError(f"{name} must be an ISO date", name)

        status = args.get('status', 'open')
        return cls(
            page=max(1, _int('page', 1)),
            limit=max(1, min(_int('limit', 20), MAX_PAGE_SIZE)),
            batch_id=_int('batch_id'),
            min_risk=_int('min_risk'),
            max_risk=_int('max_risk'),
            status=None if status == 'all' else status,
            start_date=_date('start_date'),
            end_date=_date('end_date'),
        )

    def criteria(self) -> list:
        clauses = []
        if self.status:
            clauses.append(FlaggedEvent.status == self.status)
        if self.batch_id is not None:
            clauses.append(FlaggedEvent.batch_id == self.batch_id)
        if self.min_risk is not None:
            clauses.append(FlaggedEvent.risk_score >= self.min_risk)
        if self.max_risk is not None:
            clauses.append(FlaggedEvent.risk_score <= self.max_risk)
        if self.start_date:
            clauses.append(FlaggedEvent.created_at >= self.start_date)
        if self.end_date:
            clauses.append(FlaggedEvent.created_at <= self.end_date)
        return clauses


def list_flagged(flt: FlaggedEventFilter = None) -> Dict[str, Any]:
    flt = flt or FlaggedEventFilter()
    query = FlaggedEvent.query.filter(*flt.criteria())

    total = query.count()
    events = (
        query.order_by(FlaggedEvent.created_at.desc(), FlaggedEvent.id.desc())
        .offset((flt.page - 1) * flt.limit)
        .limit(flt.limit)
        .all()
    )

    return {
        'flagged': [e.to_dict() for e in events],
        'total': total,
        'page': flt.page,
        'limit': flt.limit,
        'pages': (total + flt.limit - 1) // flt.limit,
    }


def resolve_flagged(event_id: int, action: str, notes: str, admin: str) -> FlaggedEvent:
    """
    Close a flagged event.

    `action` is what the admin did about it (e.g. 'warned', 'blocked'); it
    goes to the audit log, the event itself is always marked resolved.
    """
    if not action:
        raise ValidationError("Action is required", "action")
    if not notes:
        raise ValidationError("Notes are required", "notes")

    event = db.session.get(FlaggedEvent, event_id)
    if event is None:
        raise NotFoundError("Flagged event", event_id)

    event.status = FLAG_RESOLVED
    event.notes = notes
    event.resolved_by = admin
    event.resolved_at = datetime.utcnow()
    db.session.commit()

    write_audit(admin, 'flagged_event_resolved', {
        'flaggedEventId': event.id,
        'action': action,
        'notes': notes,
    })
    logger.info(f"Flagged event {event.id} resolved ({action}) by {admin}")
    return event
