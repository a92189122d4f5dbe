"""Routing of inbound chat messages to an AI provider or a human admin.

AI replies degrade gracefully: a failed provider call produces a fixed
apology message in the transcript instead of an error for the visitor.
Configuration problems (no model chosen, model disabled) are still raised,
since retrying will not fix them.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from .credentials import CredentialStore
from .errors import ModelNotConfiguredError, NoModelSpecifiedError
from .models import ChatSession, Message
from .providers import ChatProvider, ChatReply, ProviderRegistry
from .realtime import Broadcaster
from .sessions import ChatSessionStore

logger = logging.getLogger(__name__)

APOLOGY_MESSAGE = (
    "I apologize, but I'm having trouble processing your request right now. "
    "Please try again or contact our support team."
)


@dataclass
class RoutedMessage:
    """Messages stored for one inbound user message.

    Attributes:
        user_message: The persisted user message.
        response_message: The AI reply (or apology); None for live chats.
    """

    user_message: Message
    response_message: Optional[Message] = None


class MessageRouter:
    def __init__(
        self,
        store: ChatSessionStore,
        registry: ProviderRegistry,
        credentials: CredentialStore,
        broadcaster: Broadcaster,
        system_prompt: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.store = store
        self.registry = registry
        self.credentials = credentials
        self.broadcaster = broadcaster
        self.system_prompt = system_prompt
        self.timeout = timeout
        self.transport = transport

    def handle_user_message(self, session_id: str, content: str, model_override: Optional[str] = None) -> RoutedMessage:
        """Persist a visitor message and, for AI chats, the generated reply.

        Args:
            session_id: Target session.
            content: Message text.
            model_override: Provider id to use instead of the session's choice.

        Raises:
            SessionNotFoundError: Unknown session.
            SessionTerminatedError: The session was terminated.
            NoModelSpecifiedError: AI chat with neither override nor stored model.
            ModelNotConfiguredError: The provider is missing, disabled or failing
                its key test. The user message is already stored at this point.
        """
        session = self.store.get(session_id)
        user_message = self.store.append_message(session_id, 'user', content)
        self._broadcast_message(session_id, user_message)

        if session.chat_type != 'ai':
            logger.info(f"[ROUTER] New message in live chat {session_id} from {session.user_name}")
            return RoutedMessage(user_message=user_message)

        provider_id = (model_override or session.selected_model or '').strip().lower()
        if not provider_id:
            raise NoModelSpecifiedError()
        if provider_id not in self.registry:
            raise ModelNotConfiguredError(provider_id)
        usable = self.credentials.get_usable_key(provider_id)
        if usable is None:
            raise ModelNotConfiguredError(provider_id)
        api_key, model_name = usable

        result = self.generate_reply(self.registry.get(provider_id), api_key, model_name, content)
        if result.ok:
            text = result.reply
        else:
            logger.error(f"[ROUTER] AI response error for session {session_id} via {provider_id}: {result.error.message}")
            text = APOLOGY_MESSAGE

        response = self.store.append_message(session_id, 'ai', text, ai_model=provider_id)
        self._broadcast_message(session_id, response)
        return RoutedMessage(user_message=user_message, response_message=response)

    def generate_reply(self, provider: ChatProvider, api_key: str, model: Optional[str], message: str) -> ChatReply:
        return asyncio.run(self._generate(provider, api_key, model, message))

    async def _generate(self, provider: ChatProvider, api_key: str, model: Optional[str], message: str) -> ChatReply:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                return await asyncio.wait_for(
                    provider.complete(client, api_key, model, message, self.system_prompt),
                    timeout=self.timeout,
                )
            except asyncio.TimeoutError:
                return provider.failed(f"{provider.display_name} timed out after {self.timeout:g}s")

    def handle_admin_reply(self, session_id: str, admin_id: str, content: str) -> Message:
        message = self.store.record_admin_reply(session_id, admin_id, content)
        self._broadcast_message(session_id, message)
        self._broadcast_status(self.store.get(session_id))
        return message

    def pickup(self, session_id: str, admin_id: str) -> ChatSession:
        session = self.store.assign_admin(session_id, admin_id)
        self._broadcast_status(session)
        return session

    def close_session(self, session_id: str) -> ChatSession:
        session = self.store.set_status(session_id, 'closed')
        self._broadcast_status(session)
        return session

    def terminate_session(self, session_id: str, reason: Optional[str], admin_id: str) -> ChatSession:
        session = self.store.set_status(session_id, 'terminated', reason=reason, actor=admin_id)
        self._broadcast_message(session_id, session.messages[-1])
        self._broadcast_status(session)
        return session

    # Broadcasting -----------------------------------------------------------

    def _broadcast_message(self, session_id: str, message: Message) -> None:
        self._emit(session_id, 'message-received', {"message": message.to_dict()})

    def _broadcast_status(self, session: ChatSession) -> None:
        self._emit(session.session_id, 'status-changed', {"status": session.status, "admin_id": session.admin_id})

    def _emit(self, session_id: str, event: str, payload: Dict[str, Any]) -> None:
        try:
            self.broadcaster.emit(session_id, event, payload)
        except Exception as e:
            # Live viewers are best-effort; the transcript is already stored
            logger.warning(f"[BROADCAST] Failed to emit {event} for {session_id}: {e.__class__.__name__}: {e}")
