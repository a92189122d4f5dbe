from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping

from ..errors import ProviderNotFoundError
from .base import ChatProvider
from .openai_provider import OpenAIProvider, GroqProvider, DeepSeekProvider
from .gemini_provider import GeminiProvider


class ProviderRegistry:
    """Immutable catalog of the AI providers chats can be routed to."""

    def __init__(self, providers: Iterable[ChatProvider]):
        self._providers: Mapping[str, ChatProvider] = MappingProxyType({p.name: p for p in providers})

    @classmethod
    def from_config(cls, config: Mapping) -> 'ProviderRegistry':
        return cls([
            OpenAIProvider(config.get('OPENAI_API_BASE', 'https://api.openai.com/v1')),
            GroqProvider(config.get('GROQ_API_BASE', 'https://api.groq.com/openai/v1')),
            DeepSeekProvider(config.get('DEEPSEEK_API_BASE', 'https://api.deepseek.com/v1')),
            GeminiProvider(config.get('GEMINI_API_BASE', 'https://generativelanguage.googleapis.com')),
        ])

    def get(self, provider_id: str) -> ChatProvider:
        provider = self._providers.get((provider_id or '').lower())
        if provider is None:
            raise ProviderNotFoundError(provider_id)
        return provider

    def __contains__(self, provider_id: object) -> bool:
        return isinstance(provider_id, str) and provider_id.lower() in self._providers

    def ids(self) -> List[str]:
        return list(self._providers)

    def catalog(self) -> List[Dict[str, str]]:
        return [p.catalog_entry() for p in self._providers.values()]
