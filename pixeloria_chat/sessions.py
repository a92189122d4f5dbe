"""Chat session lifecycle and the append-only message log.

Status transitions::

    waiting ──pickup / admin reply──▶ active
    waiting | active ──close──▶ closed ──admin reply──▶ active
    any ──terminate──▶ terminated   (terminal; further appends are rejected)

Every write is one transaction against the session row, so concurrent
appends to the same session never lose or reorder messages, and the
activity timestamp is advanced with a single conditional UPDATE.
"""

import logging
import secrets
import time
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import case, update

from .db import db
from .errors import SessionNotFoundError, SessionTerminatedError, ValidationError
from .models import CHAT_STATUSES, CHAT_TYPES, SENDERS, ChatSession, Message, utcnow
from .presence import PresenceTracker
from .utils.validation import validate_chat_type, validate_user_info

logger = logging.getLogger(__name__)


def new_session_id() -> str:
    return f"chat_{int(time.time() * 1000)}_{secrets.token_hex(6)}"


class ChatSessionStore:
    def __init__(self, presence: PresenceTracker):
        self.presence = presence

    # Reads ------------------------------------------------------------------

    def find_by_session_id(self, session_id: str) -> Optional[ChatSession]:
        if not session_id:
            return None
        return ChatSession.query.filter_by(session_id=session_id).first()

    def get(self, session_id: str) -> ChatSession:
        session = self.find_by_session_id(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def list_sessions(
        self,
        chat_type: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[ChatSession], int]:
        """Sessions ordered by most recent activity, plus the unpaged total."""
        query = ChatSession.query
        if chat_type:
            query = query.filter(ChatSession.chat_type == chat_type)
        if status:
            query = query.filter(ChatSession.status == status)
        total = query.count()
        items = (
            query.order_by(ChatSession.last_activity.desc(), ChatSession.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return items, total

    # Writes -----------------------------------------------------------------

    def create(self, user_info: Dict[str, Any], chat_type: str, ai_config: Optional[Dict[str, Any]] = None) -> ChatSession:
        user = validate_user_info(user_info)
        chat_type = validate_chat_type(chat_type, CHAT_TYPES)

        admin_id = None
        selected_model = None
        if chat_type == 'ai':
            status = 'active'
            selected_model = (ai_config or {}).get('selected_model') or None
        else:
            admin_id = self.presence.find_available_admin()
            status = 'active' if admin_id else 'waiting'

        now = utcnow()
        session = ChatSession(
            session_id=new_session_id(),
            user_name=user['name'],
            user_email=user['email'],
            user_country=user['country'],
            chat_type=chat_type,
            status=status,
            admin_id=admin_id,
            selected_model=selected_model,
            created_at=now,
            last_activity=now,
        )
        db.session.add(session)
        db.session.commit()
        logger.info(f"[SESSIONS] Created {chat_type} chat {session.session_id} ({status})")
        return session

    def append_message(self, session_id: str, sender: str, content: str, ai_model: Optional[str] = None) -> Message:
        if sender not in SENDERS:
            raise ValidationError(f"sender must be one of: {', '.join(SENDERS)}")
        if not isinstance(content, str) or not content.strip():
            raise ValidationError("content is required")
        if sender == 'ai' and not ai_model:
            raise ValidationError("ai_model is required for AI messages")

        session = self._lock(session_id)
        message = self._add_message(session, sender, content, ai_model if sender == 'ai' else None)
        db.session.commit()
        return message

    def record_admin_reply(self, session_id: str, admin_id: str, content: str) -> Message:
        """Append an admin message, reopening the session and claiming it if unassigned."""
        if not admin_id:
            raise ValidationError("admin_id is required")
        if not isinstance(content, str) or not content.strip():
            raise ValidationError("content is required")

        session = self._lock(session_id)
        message = self._add_message(session, 'admin', content)
        if session.status in ('waiting', 'closed'):
            logger.info(f"[SESSIONS] {session_id}: {session.status} -> active on admin reply")
            session.status = 'active'
        if session.chat_type == 'admin' and not session.admin_id:
            session.admin_id = admin_id
        db.session.commit()
        return message

    def assign_admin(self, session_id: str, admin_id: str) -> ChatSession:
        if not admin_id:
            raise ValidationError("admin_id is required")
        session = self._lock(session_id)
        if session.chat_type != 'admin':
            raise ValidationError("Only live chats can be assigned to an admin")
        session.admin_id = admin_id
        if session.status in ('waiting', 'closed'):
            session.status = 'active'
        self._touch(session, utcnow())
        db.session.commit()
        logger.info(f"[SESSIONS] {session_id} picked up by admin {admin_id}")
        return session

    def set_status(
        self,
        session_id: str,
        status: str,
        reason: Optional[str] = None,
        actor: Optional[str] = None,
    ) -> ChatSession:
        if status not in CHAT_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(CHAT_STATUSES)}")
        if status == 'terminated' and not actor:
            raise ValidationError("terminated_by is required")

        session = self._lock(session_id)
        now = utcnow()
        if status == 'terminated':
            reason = (reason or '').strip() or 'No reason provided'
            session.termination_reason = reason
            session.terminated_by = actor
            session.terminated_at = now
            self._add_message(session, 'system', f"Chat terminated by admin. Reason: {reason}")
        session.status = status
        self._touch(session, now)
        db.session.commit()
        logger.info(f"[SESSIONS] {session_id} -> {status}")
        return session

    # Internals --------------------------------------------------------------

    def _lock(self, session_id: str) -> ChatSession:
        """Load the session row for writing; terminated sessions are read-only."""
        session = (
            ChatSession.query.filter_by(session_id=session_id)
            .with_for_update()
            .first()
        ) if session_id else None
        if session is None:
            raise SessionNotFoundError(session_id)
        if session.status == 'terminated':
            db.session.rollback()
            raise SessionTerminatedError(session_id)
        return session

    def _add_message(self, session: ChatSession, sender: str, content: str, ai_model: Optional[str] = None) -> Message:
        now = utcnow()
        message = Message(
            chat_session_id=session.id,
            sender=sender,
            content=content,
            timestamp=now,
            ai_model=ai_model,
            status='sent',
        )
        db.session.add(message)
        self._touch(session, now)
        return message

    @staticmethod
    def _touch(session: ChatSession, now: datetime) -> None:
        # Compare-and-set in one statement; last_activity only moves forward
        column = ChatSession.last_activity
        db.session.execute(
            update(ChatSession)
            .where(ChatSession.id == session.id)
            .values(last_activity=case((column.is_(None), now), (column < now, now), else_=column))
            .execution_options(synchronize_session=False)
        )
