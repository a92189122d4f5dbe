import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from .db import db

CHAT_TYPES = ("ai", "admin")
CHAT_STATUSES = ("waiting", "active", "closed", "terminated")
SENDERS = ("user", "ai", "admin", "system")
CREDENTIAL_STATUSES = ("active", "error")


def utcnow() -> datetime:
    """Naive UTC timestamp, the form SQLite round-trips unchanged."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class ChatSession(db.Model):
    __tablename__ = 'chat_sessions'
    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.String(64), unique=True, nullable=False, index=True)
    user_name = db.Column(db.String(200), nullable=False)
    user_email = db.Column(db.String(320), nullable=False, index=True)
    user_country = db.Column(db.String(100), nullable=False)
    chat_type = db.Column(db.String(10), nullable=False)  # 'ai' or 'admin'
    status = db.Column(db.String(20), nullable=False, default='active')
    admin_id = db.Column(db.String(64), index=True)
    selected_model = db.Column(db.String(50))
    termination_reason = db.Column(db.Text)
    terminated_by = db.Column(db.String(64))
    terminated_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=utcnow)
    last_activity = db.Column(db.DateTime, default=utcnow, index=True)

    # Read-only view; messages are only ever written through ChatSessionStore
    messages = db.relationship('Message', viewonly=True, lazy=True, order_by="Message.id")

    @property
    def user_info(self) -> dict:
        return {"name": self.user_name, "email": self.user_email, "country": self.user_country}

    @property
    def ai_config(self) -> Optional[dict]:
        if self.chat_type != 'ai':
            return None
        return {"selected_model": self.selected_model}

    def to_dict(self, include_messages: bool = False) -> dict:
        data = {
            "session_id": self.session_id,
            "user_info": self.user_info,
            "chat_type": self.chat_type,
            "status": self.status,
            "admin_id": self.admin_id,
            "ai_config": self.ai_config,
            "created_at": _iso(self.created_at),
            "last_activity": _iso(self.last_activity),
        }
        if self.status == 'terminated':
            data["termination"] = {
                "reason": self.termination_reason,
                "terminated_by": self.terminated_by,
                "terminated_at": _iso(self.terminated_at),
            }
        if include_messages:
            data["messages"] = [m.to_dict() for m in self.messages]
        return data


class Message(db.Model):
    __tablename__ = 'chat_messages'
    id = db.Column(db.Integer, primary_key=True)
    chat_session_id = db.Column(db.Integer, db.ForeignKey('chat_sessions.id'), nullable=False, index=True)
    message_id = db.Column(db.String(32), unique=True, nullable=False, default=lambda: uuid.uuid4().hex)
    sender = db.Column(db.String(10), nullable=False)  # 'user', 'ai', 'admin' or 'system'
    content = db.Column(db.Text, nullable=False)
    timestamp = db.Column(db.DateTime, nullable=False, default=utcnow)
    ai_model = db.Column(db.String(50))
    status = db.Column(db.String(10), nullable=False, default='sent')

    def to_dict(self) -> dict:
        data = {
            "message_id": self.message_id,
            "sender": self.sender,
            "content": self.content,
            "timestamp": _iso(self.timestamp),
            "status": self.status,
        }
        if self.ai_model:
            data["ai_model"] = self.ai_model
        return data


class ProviderCredential(db.Model):
    __tablename__ = 'ai_provider_credentials'
    id = db.Column(db.String(50), primary_key=True)  # provider id, e.g. 'openai'
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.String(500), default='')
    icon = db.Column(db.String(100), default='')
    color = db.Column(db.String(50), default='')
    encrypted_api_key = db.Column(db.Text, nullable=False)
    model_name = db.Column(db.String(200))
    is_enabled = db.Column(db.Boolean, nullable=False, default=False)
    status = db.Column(db.String(10), nullable=False, default='error')
    last_tested = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)
    updated_by = db.Column(db.String(64))

    @property
    def is_usable(self) -> bool:
        return bool(self.is_enabled) and self.status == 'active'

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "icon": self.icon,
            "color": self.color,
            "modelName": self.model_name or "",
            "isEnabled": bool(self.is_enabled),
            "status": self.status,
            "lastTested": _iso(self.last_tested),
            "updatedAt": _iso(self.updated_at),
        }


class PresenceRecord(db.Model):
    __tablename__ = 'admin_presence'
    admin_id = db.Column(db.String(64), primary_key=True)
    is_online = db.Column(db.Boolean, nullable=False, default=False)
    last_seen = db.Column(db.DateTime, nullable=False, default=utcnow)
    status_message = db.Column(db.String(200), default='Available for chat')

    def is_available(self, now: datetime, freshness: timedelta) -> bool:
        return bool(self.is_online) and self.last_seen >= now - freshness

    def to_dict(self) -> dict:
        return {
            "admin_id": self.admin_id,
            "is_online": bool(self.is_online),
            "last_seen": _iso(self.last_seen),
            "status_message": self.status_message,
        }


def init_db():
    db.create_all()
