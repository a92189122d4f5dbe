"""
Tests for stored provider credentials: save, test, masking and gating.
"""

import pytest

from pixeloria_chat.db import db
from pixeloria_chat.errors import EncryptionError, NotFoundError, ValidationError
from pixeloria_chat.models import ProviderCredential
from pixeloria_chat.utils.crypto import MASK


def test_save_valid_key_is_active(services, mock_ai):
    mock_ai.test_status = 200
    credential, is_valid = services.credentials.save(
        "openai", "OpenAI", "sk-abc123", model_name="gpt-4o", is_enabled=True
    )
    assert is_valid is True
    assert credential.status == "active"
    assert credential.last_tested is not None
    assert credential.model_name == "gpt-4o"
    assert credential.encrypted_api_key != "sk-abc123"
    assert services.vault.decrypt(credential.encrypted_api_key) == "sk-abc123"


def test_save_invalid_key_is_stored_with_error_status(services, mock_ai):
    mock_ai.test_status = 401
    credential, is_valid = services.credentials.save("groq", "Groq", "gsk_bad", is_enabled=True)
    assert is_valid is False
    assert credential.status == "error"
    assert credential.last_tested is None
    assert ProviderCredential.query.count() == 1


def test_resave_with_bad_key_keeps_last_successful_test(services, mock_ai, configure_provider):
    first = configure_provider("openai")
    tested_at = first.last_tested

    mock_ai.test_status = 401
    credential, _ = services.credentials.save("openai", "OpenAI", "sk-rotated", is_enabled=True)
    assert credential.status == "error"
    assert credential.last_tested == tested_at
    assert ProviderCredential.query.count() == 1


def test_save_normalises_provider_id(services, configure_provider):
    configure_provider("OpenAI")
    assert db.session.get(ProviderCredential, "openai") is not None


@pytest.mark.parametrize(
    "args",
    [("", "OpenAI", "sk"), ("openai", "", "sk"), ("openai", "OpenAI", "")],
)
def test_save_requires_fields(services, args):
    with pytest.raises(ValidationError) as exc:
        services.credentials.save(*args)
    assert exc.value.message == "Missing required fields: id, name, and apiKey are required"


@pytest.mark.parametrize(
    "args,field",
    [((5, "OpenAI", "sk"), "id"), (("openai", ["OpenAI"], "sk"), "name"), (("openai", "OpenAI", 12345), "apiKey")],
)
def test_save_rejects_non_string_fields(services, args, field):
    with pytest.raises(ValidationError) as exc:
        services.credentials.save(*args)
    assert exc.value.message == f"{field} must be a string"
    assert ProviderCredential.query.count() == 0


def test_save_rejects_unknown_provider(services):
    with pytest.raises(ValidationError):
        services.credentials.save("anthropic", "Claude", "sk-ant")
    assert ProviderCredential.query.count() == 0


def test_encryption_failure_stores_nothing(services, monkeypatch):
    def fail(plaintext):
        raise EncryptionError("Failed to encrypt API key")

    monkeypatch.setattr(services.vault, "encrypt", fail)
    with pytest.raises(EncryptionError):
        services.credentials.save("openai", "OpenAI", "sk-abc123", is_enabled=True)
    assert ProviderCredential.query.count() == 0


def test_list_masked_shows_only_last_four(services, configure_provider):
    configure_provider("openai", api_key="sk-abc123")
    models = services.credentials.list_masked()
    assert len(models) == 1
    assert models[0]["apiKey"] == MASK + "c123"
    assert "sk-abc123" not in str(models)


def test_list_masked_with_undecryptable_key(services, configure_provider):
    credential = configure_provider("openai")
    credential.encrypted_api_key = "garbage"
    assert services.credentials.list_masked()[0]["apiKey"] == ""


def test_only_enabled_and_active_are_usable(services, configure_provider):
    configure_provider("openai", enabled=True, valid=True)
    configure_provider("groq", enabled=False, valid=True)
    configure_provider("deepseek", enabled=True, valid=False)
    configure_provider("gemini", enabled=False, valid=False)

    usable = services.credentials.list_usable()
    assert [m["id"] for m in usable] == ["openai"]
    assert "apiKey" not in usable[0]
    assert "encrypted_api_key" not in usable[0]

    assert services.credentials.get_usable_key("openai") == ("sk-test-key-1234", "")
    assert services.credentials.get_usable_key("groq") is None
    assert services.credentials.get_usable_key("deepseek") is None
    assert services.credentials.get_usable_key("gemini") is None


def test_undecryptable_key_is_not_usable(services, configure_provider):
    credential = configure_provider("openai")
    credential.encrypted_api_key = "00ff:abcd"
    assert services.credentials.get_usable_key("openai") is None


def test_test_updates_stored_status(services, mock_ai, configure_provider):
    configure_provider("openai", valid=False)

    mock_ai.test_status = 200
    assert services.credentials.test("openai", "sk-new") is True
    credential = db.session.get(ProviderCredential, "openai")
    assert credential.status == "active"
    assert credential.last_tested is not None

    mock_ai.test_status = 401
    assert services.credentials.test("openai", "sk-new") is False
    assert db.session.get(ProviderCredential, "openai").status == "error"


def test_test_without_stored_record(services, mock_ai):
    mock_ai.test_status = 200
    assert services.credentials.test("gemini", "AIza-key") is True
    assert ProviderCredential.query.count() == 0


def test_test_requires_fields(services):
    with pytest.raises(ValidationError) as exc:
        services.credentials.test("openai", "")
    assert exc.value.message == "Model ID and API key are required"


def test_test_rejects_non_string_fields(services):
    with pytest.raises(ValidationError) as exc:
        services.credentials.test("openai", 123)
    assert exc.value.message == "apiKey must be a string"
    with pytest.raises(ValidationError):
        services.credentials.test({"id": "openai"}, "sk-x")


def test_delete(services, configure_provider):
    configure_provider("openai")
    services.credentials.delete("openai")
    assert ProviderCredential.query.count() == 0
    with pytest.raises(NotFoundError):
        services.credentials.delete("openai")
