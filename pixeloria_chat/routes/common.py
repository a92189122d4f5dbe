import hmac
from functools import wraps
from typing import Any, Dict

from flask import current_app, jsonify, request

from ..errors import ValidationError
from ..utils.validation import require_object


def is_admin_request() -> bool:
    """True when the request carries the configured admin bearer token.

    Without an ``ADMIN_API_TOKEN`` configured every request counts as admin.
    """
    token = current_app.config.get('ADMIN_API_TOKEN')
    if not token:
        return True
    header = request.headers.get('Authorization', '')
    return hmac.compare_digest(header.encode(), f"Bearer {token}".encode())


def admin_required_response():
    return jsonify({"error": "admin authorization required"}), 401


def require_admin(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if not is_admin_request():
            return admin_required_response()
        return view(*args, **kwargs)

    return wrapper


def json_body() -> Dict[str, Any]:
    """The request's JSON object; an absent or unparsable body reads as empty."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    return require_object(data)


def admin_id_from(data: Dict[str, Any]) -> str:
    value = data.get('admin_id') or request.headers.get('X-Admin-Id') or ''
    if not isinstance(value, str):
        raise ValidationError("admin_id must be a string")
    return value.strip()
