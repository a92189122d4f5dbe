import logging

from flask import Blueprint, Response, current_app, jsonify, request, stream_with_context

from ..errors import ValidationError
from ..models import CHAT_STATUSES, CHAT_TYPES
from ..services import get_services
from ..transcripts import email_transcript, notify_waiting_chat, render_transcript_html
from ..utils.validation import (
    optional_text,
    parse_pagination,
    require_text,
    validate_message_request,
    validate_model_id,
)
from .common import admin_id_from, admin_required_response, is_admin_request, json_body, require_admin

logger = logging.getLogger(__name__)

chat_bp = Blueprint('chat', __name__)


@chat_bp.post('/initialize')
def initialize_chat():
    """Start a chat session.

    Expected JSON body:
        {
            "user_info": {"name": str, "email": str, "country": str},
            "chat_type": "ai" | "admin",
            "ai_config": {"selected_model": str} (optional)
        }
    """
    services = get_services()
    data = json_body()
    ai_config = data.get('ai_config') or {}
    if not isinstance(ai_config, dict):
        raise ValidationError("ai_config must be an object")
    selected_model = validate_model_id(ai_config.get('selected_model'), services.registry.ids())

    session = services.sessions.create(
        data.get('user_info'),
        data.get('chat_type'),
        ai_config={'selected_model': selected_model},
    )

    if session.status == 'waiting':
        result = notify_waiting_chat(services.email, current_app.config.get('CHAT_NOTIFY_EMAILS'), session)
        if result and not result["success"]:
            logger.warning(f"[API] Waiting-chat notification incomplete for {session.session_id}: {result.get('error')}")

    return jsonify({
        "session_id": session.session_id,
        "chat_type": session.chat_type,
        "status": session.status,
        "admin_available": session.admin_id is not None,
        "assigned_admin": session.admin_id,
        "ai_models": services.credentials.list_usable(),
    }), 201


@chat_bp.post('/message')
def send_message():
    """Store a visitor message and return it with the AI reply, if any.

    Expected JSON body:
        {
            "session_id": str,
            "content": str,
            "sender": "user" (optional),
            "ai_model": str (optional, overrides the session's model)
        }
    """
    services = get_services()
    data = json_body()
    session_id, content, _sender = validate_message_request(data)
    model_override = validate_model_id(data.get('ai_model'), services.registry.ids(), field='ai_model')

    routed = services.router.handle_user_message(session_id, content, model_override=model_override)
    return jsonify({
        "user_message": routed.user_message.to_dict(),
        "ai_response": routed.response_message.to_dict() if routed.response_message else None,
    })


@chat_bp.get('/<session_id>/history')
def chat_history(session_id: str):
    session = get_services().sessions.get(session_id)
    return jsonify({"chat": session.to_dict(include_messages=True)})


@chat_bp.post('/<session_id>/close')
def close_chat(session_id: str):
    session = get_services().router.close_session(session_id)
    return jsonify({"ok": True, "chat": session.to_dict()})


@chat_bp.get('/<session_id>/events')
def chat_events(session_id: str):
    """Server-Sent Events stream of new messages and status changes."""
    services = get_services()
    services.sessions.get(session_id)
    stream = services.broadcaster.listen(session_id)
    return Response(
        stream_with_context(stream),
        mimetype='text/event-stream',
        headers={'Cache-Control': 'no-cache', 'X-Accel-Buffering': 'no'},
    )


@chat_bp.get('/<session_id>/export')
@require_admin
def export_chat(session_id: str):
    session = get_services().sessions.get(session_id)
    return Response(
        render_transcript_html(session),
        mimetype='text/html',
        headers={'Content-Disposition': f'attachment; filename="chat_{session.session_id}.html"'},
    )


@chat_bp.post('/<session_id>/transcript/email')
def email_chat_transcript(session_id: str):
    """Mail the transcript to the visitor; other addresses need admin authorization.

    Expected JSON body: {"to_email": str (optional, defaults to the visitor)}
    """
    services = get_services()
    session = services.sessions.get(session_id)
    data = json_body()
    to_email = optional_text(data, 'to_email') or session.user_email
    if to_email.lower() != session.user_email.lower() and not is_admin_request():
        return admin_required_response()

    result = email_transcript(services.email, session, to_email)
    if result["success"]:
        return jsonify({"ok": True, "sent": result["sent"]})
    return jsonify({"error": result.get("error", "email failed")}), 500


# Admin ----------------------------------------------------------------------


@chat_bp.post('/admin/reply')
@require_admin
def admin_reply():
    """Expected JSON body: {"session_id": str, "content": str, "admin_id": str}"""
    data = json_body()
    session_id = require_text(data, 'session_id')
    message = get_services().router.handle_admin_reply(session_id, admin_id_from(data), data.get('content'))
    return jsonify({"message": message.to_dict()})


@chat_bp.post('/admin/pickup')
@require_admin
def admin_pickup():
    data = json_body()
    session_id = require_text(data, 'session_id')
    session = get_services().router.pickup(session_id, admin_id_from(data))
    return jsonify({"ok": True, "chat": session.to_dict()})


@chat_bp.post('/<session_id>/terminate')
@require_admin
def terminate_chat(session_id: str):
    """Expected JSON body: {"reason": str (optional), "admin_id": str}"""
    data = json_body()
    session = get_services().router.terminate_session(session_id, optional_text(data, 'reason'), admin_id_from(data))
    return jsonify({"ok": True, "chat": session.to_dict()})


@chat_bp.get('/admin/chats')
@require_admin
def admin_chats():
    """List sessions, newest activity first.

    Query parameters: ``status`` (default ``active``, ``all`` for any),
    ``type`` (default ``admin``, ``all`` for any), ``limit``, ``offset``.
    """
    status = request.args.get('status', 'active')
    chat_type = request.args.get('type', 'admin')
    if status != 'all' and status not in CHAT_STATUSES:
        raise ValidationError(f"status must be one of: all, {', '.join(CHAT_STATUSES)}")
    if chat_type != 'all' and chat_type not in CHAT_TYPES:
        raise ValidationError(f"type must be one of: all, {', '.join(CHAT_TYPES)}")
    limit, offset = parse_pagination(request.args)

    chats, total = get_services().sessions.list_sessions(
        chat_type=None if chat_type == 'all' else chat_type,
        status=None if status == 'all' else status,
        limit=limit,
        offset=offset,
    )
    return jsonify({"chats": [c.to_dict() for c in chats], "total": total})


@chat_bp.get('/admin/status')
@require_admin
def admin_statuses():
    records = get_services().presence.list_statuses()
    return jsonify({"adminStatuses": [r.to_dict() for r in records]})


@chat_bp.put('/admin/status')
@require_admin
def update_admin_status():
    """Expected JSON body: {"admin_id": str, "is_online": bool, "status_message": str (optional)}"""
    data = json_body()
    if not isinstance(data.get('is_online'), bool):
        raise ValidationError("is_online must be a boolean")
    record = get_services().presence.set_online(
        admin_id_from(data), data['is_online'], optional_text(data, 'status_message') or None
    )
    return jsonify({"adminStatus": record.to_dict()})
