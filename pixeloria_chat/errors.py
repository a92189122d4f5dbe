"""Typed failures raised by the chat service.

Every error carries the HTTP status the blueprints answer with, so route
handlers can let them propagate to the app-wide error handler.
"""


class ChatServiceError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ChatServiceError, ValueError):
    """Missing or malformed input, rejected before any mutation."""

    status_code = 400


class NotFoundError(ChatServiceError):
    status_code = 404


class SessionNotFoundError(NotFoundError):
    def __init__(self, session_id: str):
        super().__init__("Chat session not found")
        self.session_id = session_id


class ProviderNotFoundError(NotFoundError):
    def __init__(self, provider_id: str):
        super().__init__(f"unknown provider: {provider_id}")
        self.provider_id = provider_id


class ConfigurationError(ChatServiceError):
    """The AI side of a chat is not set up, as opposed to temporarily failing."""

    status_code = 400


class NoModelSpecifiedError(ConfigurationError):
    def __init__(self):
        super().__init__("No AI model specified for this chat")


class ModelNotConfiguredError(ConfigurationError):
    def __init__(self, provider_id: str):
        super().__init__(f"AI model '{provider_id}' is not configured or not active")
        self.provider_id = provider_id


class SessionTerminatedError(ChatServiceError):
    status_code = 409

    def __init__(self, session_id: str):
        super().__init__("Chat session has been terminated")
        self.session_id = session_id


class EncryptionError(ChatServiceError):
    status_code = 500


class ProviderUnavailableError(ChatServiceError):
    """A provider call failed; carried on ChatReply, never raised past the router."""

    status_code = 502

    def __init__(self, provider_id: str, message: str):
        super().__init__(message)
        self.provider_id = provider_id
