from flask import Blueprint, jsonify
from ..errors import ValidationError
from ..services import get_services
from ..utils.validation import optional_text
from .common import admin_id_from, json_body, require_admin

settings_bp = Blueprint('settings', __name__)


@settings_bp.get('/providers')
@require_admin
def list_providers():
    return jsonify({"providers": get_services().registry.catalog()})


@settings_bp.get('/ai-models')
@require_admin
def list_ai_models():
    return jsonify({"aiModels": get_services().credentials.list_masked()})


@settings_bp.post('/ai-models')
@require_admin
def save_ai_model():
    """Save a provider key; it is tested before being stored.

    Expected JSON body:
        {
            "id": str, "name": str, "apiKey": str,
            "modelName": str (optional), "isEnabled": bool (optional),
            "description": str, "icon": str, "color": str (optional)
        }
    """
    data = json_body()
    is_enabled = data.get('isEnabled')
    if is_enabled is None:
        is_enabled = False
    if not isinstance(is_enabled, bool):
        raise ValidationError("isEnabled must be a boolean")
    credential, is_valid = get_services().credentials.save(
        data.get('id'),
        data.get('name'),
        data.get('apiKey'),
        model_name=optional_text(data, 'modelName'),
        is_enabled=is_enabled,
        description=optional_text(data, 'description'),
        icon=optional_text(data, 'icon'),
        color=optional_text(data, 'color'),
        updated_by=admin_id_from(data) or None,
    )
    validity = 'valid and active' if is_valid else 'invalid - please check your key'
    return jsonify({
        "ok": True,
        "message": f"AI model configuration saved successfully. API key is {validity}",
        "status": credential.status,
        "isValid": is_valid,
    })


@settings_bp.post('/ai-models/test')
@require_admin
def test_ai_model():
    """Expected JSON body: {"modelId": str, "apiKey": str}"""
    data = json_body()
    is_valid = get_services().credentials.test(data.get('modelId'), data.get('apiKey'))
    return jsonify({
        "valid": is_valid,
        "message": "API key is valid and working" if is_valid else "API key validation failed",
    })


@settings_bp.delete('/ai-models/<provider_id>')
@require_admin
def delete_ai_model(provider_id: str):
    get_services().credentials.delete(provider_id)
    return jsonify({"ok": True})


@settings_bp.get('/models/enabled')
def enabled_ai_models():
    """Providers visitors may pick for an AI chat; never includes keys."""
    return jsonify({"aiModels": get_services().credentials.list_usable()})
