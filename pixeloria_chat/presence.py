import logging
from datetime import datetime, timedelta
from typing import List, Optional

from .db import db
from .errors import ValidationError
from .models import PresenceRecord, utcnow

logger = logging.getLogger(__name__)


class PresenceTracker:
    """Self-reported admin availability with a staleness cutoff.

    An admin counts as available while ``is_online`` is set and ``last_seen``
    is no older than ``freshness``.
    """

    def __init__(self, freshness: timedelta = timedelta(minutes=5)):
        self.freshness = freshness

    def set_online(self, admin_id: str, is_online: bool, status_message: Optional[str] = None) -> PresenceRecord:
        if not admin_id:
            raise ValidationError("admin_id is required")
        record = db.session.get(PresenceRecord, admin_id)
        if record is None:
            record = PresenceRecord(admin_id=admin_id)
            db.session.add(record)
        record.is_online = bool(is_online)
        record.last_seen = utcnow()
        if status_message:
            record.status_message = status_message
        db.session.commit()
        logger.info(f"[PRESENCE] Admin {admin_id} is now {'online' if is_online else 'offline'}")
        return record

    def find_available_admin(self, now: Optional[datetime] = None) -> Optional[str]:
        now = now or utcnow()
        record = (
            PresenceRecord.query
            .filter(PresenceRecord.is_online.is_(True), PresenceRecord.last_seen >= now - self.freshness)
            .order_by(PresenceRecord.last_seen.desc())
            .first()
        )
        return record.admin_id if record else None

    def list_statuses(self) -> List[PresenceRecord]:
        return PresenceRecord.query.order_by(PresenceRecord.last_seen.desc()).all()
