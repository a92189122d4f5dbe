"""Request validation helpers.

Each helper returns cleaned values or raises ``ValidationError`` with a
message suitable for the client.
"""

from typing import Any, Dict, Iterable, Optional, Tuple

from ..errors import ValidationError


def require_object(data: Any, what: str = "request body") -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise ValidationError(f"{what} must be a JSON object")
    return data


def optional_text(data: Dict[str, Any], field: str, default: str = "") -> str:
    """Stripped string value of ``field``, ``default`` when absent or null."""
    value = data.get(field)
    if value is None:
        return default
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    return value.strip()


def require_text(data: Dict[str, Any], field: str) -> str:
    value = data.get(field)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required")
    return value.strip()


def validate_user_info(user_info: Any) -> Dict[str, str]:
    """Validate the visitor details collected before a chat starts.

    Args:
        user_info: Mapping with ``name``, ``email`` and ``country``.

    Returns:
        Cleaned copy with the email lower-cased.

    Raises:
        ValidationError: If any field is missing or the email is malformed.
    """
    if not isinstance(user_info, dict):
        raise ValidationError("User information (name, email, country) is required")
    try:
        name = require_text(user_info, "name")
        email = require_text(user_info, "email").lower()
        country = require_text(user_info, "country")
    except ValidationError:
        raise ValidationError("User information (name, email, country) is required")
    if "@" not in email or "." not in email.split("@")[-1]:
        raise ValidationError("Invalid email format")
    return {"name": name, "email": email, "country": country}


def validate_chat_type(chat_type: Any, allowed: Iterable[str]) -> str:
    value = (chat_type or "").strip().lower() if isinstance(chat_type, str) else ""
    if value not in allowed:
        raise ValidationError(f"chat_type must be one of: {', '.join(allowed)}")
    return value


def validate_model_id(model_id: Any, known: Iterable[str], field: str = "selected_model") -> Optional[str]:
    """Return the lower-cased provider id, None if absent."""
    if model_id is None or (isinstance(model_id, str) and not model_id.strip()):
        return None
    if not isinstance(model_id, str) or model_id.strip().lower() not in known:
        raise ValidationError(f"{field} must be one of: {', '.join(known)}")
    return model_id.strip().lower()


def validate_message_request(data: dict) -> Tuple[str, str, str]:
    """Validate a public send-message request.

    Returns:
        Tuple of (session_id, content, sender), with surrounding whitespace
        removed from the content.

    Raises:
        ValidationError: If required parameters are missing or the sender is
            not a visitor.
    """
    session_id = require_text(data, "session_id")
    content = data.get("content")
    if not isinstance(content, str) or not content.strip():
        raise ValidationError("content is required")
    sender = (data.get("sender") or "user")
    if sender != "user":
        raise ValidationError("sender must be 'user'; admins reply through /api/chat/admin/reply")
    return session_id, content.strip(), sender


def parse_pagination(args: Dict[str, Any], default_limit: int = 50, max_limit: int = 200) -> Tuple[int, int]:
    try:
        limit = int(args.get("limit", default_limit))
        offset = int(args.get("offset", 0))
    except (TypeError, ValueError):
        raise ValidationError("limit and offset must be integers")
    if limit < 1 or offset < 0:
        raise ValidationError("limit must be positive and offset non-negative")
    return min(limit, max_limit), offset
