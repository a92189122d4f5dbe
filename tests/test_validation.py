"""
Tests for request validation helpers.
"""

import pytest

from pixeloria_chat.errors import ValidationError
from pixeloria_chat.utils.validation import (
    parse_pagination,
    validate_chat_type,
    validate_message_request,
    validate_model_id,
    validate_user_info,
)

KNOWN = ["openai", "groq", "deepseek", "gemini"]


def test_user_info_is_cleaned():
    cleaned = validate_user_info({"name": " Ada ", "email": "ADA@Example.COM", "country": "UK"})
    assert cleaned == {"name": "Ada", "email": "ada@example.com", "country": "UK"}


@pytest.mark.parametrize("email", ["ada", "ada@", "ada@localhost"])
def test_user_info_bad_email(email):
    with pytest.raises(ValidationError) as exc:
        validate_user_info({"name": "Ada", "email": email, "country": "UK"})
    assert exc.value.message == "Invalid email format"


def test_user_info_must_be_object():
    with pytest.raises(ValidationError):
        validate_user_info(["Ada", "ada@example.com", "UK"])


def test_chat_type():
    assert validate_chat_type(" AI ", ("ai", "admin")) == "ai"
    with pytest.raises(ValidationError):
        validate_chat_type(None, ("ai", "admin"))


def test_model_id():
    assert validate_model_id(None, KNOWN) is None
    assert validate_model_id("  ", KNOWN) is None
    assert validate_model_id("Gemini", KNOWN) == "gemini"
    with pytest.raises(ValidationError) as exc:
        validate_model_id("claude", KNOWN, field="ai_model")
    assert exc.value.message.startswith("ai_model must be one of")
    with pytest.raises(ValidationError):
        validate_model_id(42, KNOWN)


def test_message_request_defaults_sender():
    assert validate_message_request({"session_id": "chat_1", "content": "hi"}) == ("chat_1", "hi", "user")


def test_message_request_strips_content():
    assert validate_message_request({"session_id": " chat_1 ", "content": "  hi there\n"}) == ("chat_1", "hi there", "user")


def test_message_request_rejects_non_visitor_sender():
    with pytest.raises(ValidationError):
        validate_message_request({"session_id": "chat_1", "content": "hi", "sender": "ai"})


def test_pagination():
    assert parse_pagination({}) == (50, 0)
    assert parse_pagination({"limit": "500", "offset": "10"}) == (200, 10)
    for bad in ({"limit": "x"}, {"limit": "0"}, {"offset": "-1"}):
        with pytest.raises(ValidationError):
            parse_pagination(bad)
