"""Rendering of chat transcripts and chat notifications."""

from typing import Any, Dict, Iterable, Optional

from flask import render_template

from .email_service import EmailService
from .models import ChatSession, utcnow


def render_transcript_html(session: ChatSession) -> str:
    return render_template(
        'transcript.html',
        chat=session,
        messages=session.messages,
        generated_at=utcnow(),
    )


def render_transcript_text(session: ChatSession) -> str:
    lines = [
        "Pixeloria Chat History",
        f"Session: {session.session_id}",
        f"User: {session.user_name} <{session.user_email}> ({session.user_country})",
        "-" * 50,
    ]
    for msg in session.messages:
        sender = msg.sender.upper() + (f" ({msg.ai_model})" if msg.ai_model else "")
        lines.append(f"[{msg.timestamp:%Y-%m-%d %H:%M:%S}] {sender}: {msg.content}")
    return "\n".join(lines) + "\n"


def email_transcript(email: EmailService, session: ChatSession, to_email: str) -> Dict[str, Any]:
    return email.send(
        [to_email],
        f"Your Pixeloria chat transcript ({session.created_at:%Y-%m-%d})",
        render_transcript_html(session),
        text=render_transcript_text(session),
    )


def notify_waiting_chat(email: EmailService, recipients: Iterable[str], session: ChatSession) -> Optional[Dict[str, Any]]:
    """Tell operators a live chat is waiting; None when nobody is configured to hear it."""
    recipients = list(recipients or [])
    if not recipients or not email.is_configured():
        return None
    return email.send(
        recipients,
        f"Live chat waiting: {session.user_name}",
        render_template('email/waiting_chat.html', chat=session),
    )
