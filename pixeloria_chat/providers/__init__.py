from .base import ChatProvider, ChatReply
from .registry import ProviderRegistry
from .tester import ProviderTester

__all__ = ['ChatProvider', 'ChatReply', 'ProviderRegistry', 'ProviderTester']
