"""Process-wide chat components, built once per app from its config."""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Mapping

from flask import current_app

from .chat import MessageRouter
from .credentials import CredentialStore
from .email_service import EmailService
from .presence import PresenceTracker
from .providers import ProviderRegistry, ProviderTester
from .realtime import Broadcaster, LocalBroadcaster, RedisBroadcaster
from .sessions import ChatSessionStore
from .utils.crypto import CredentialVault

logger = logging.getLogger(__name__)

EXTENSION_KEY = 'pixeloria_chat'


@dataclass
class ChatServices:
    registry: ProviderRegistry
    vault: CredentialVault
    tester: ProviderTester
    credentials: CredentialStore
    presence: PresenceTracker
    sessions: ChatSessionStore
    broadcaster: Broadcaster
    router: MessageRouter
    email: EmailService


def _build_broadcaster(config: Mapping[str, Any]) -> Broadcaster:
    redis_url = config.get('REDIS_URL')
    if redis_url:
        return RedisBroadcaster.from_url(redis_url)
    logger.info("[BROADCAST] REDIS_URL not set, live events stay within this process")
    return LocalBroadcaster()


def build_services(config: Mapping[str, Any]) -> ChatServices:
    transport = config.get('HTTPX_TRANSPORT')
    registry = ProviderRegistry.from_config(config)
    vault = CredentialVault(config['AI_ENCRYPTION_SECRET'])
    tester = ProviderTester(registry, timeout=float(config.get('AI_TEST_TIMEOUT', 10)), transport=transport)
    credentials = CredentialStore(vault, tester, registry)
    presence = PresenceTracker(freshness=timedelta(seconds=int(config.get('ADMIN_FRESHNESS_SECONDS', 300))))
    sessions = ChatSessionStore(presence)
    broadcaster = _build_broadcaster(config)
    router = MessageRouter(
        sessions,
        registry,
        credentials,
        broadcaster,
        system_prompt=config['AI_SYSTEM_PROMPT'],
        timeout=float(config.get('AI_CHAT_TIMEOUT', 30)),
        transport=transport,
    )
    return ChatServices(
        registry=registry,
        vault=vault,
        tester=tester,
        credentials=credentials,
        presence=presence,
        sessions=sessions,
        broadcaster=broadcaster,
        router=router,
        email=EmailService.from_config(config),
    )


def get_services() -> ChatServices:
    return current_app.extensions[EXTENSION_KEY]
