from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from ..errors import ProviderUnavailableError


@dataclass
class ChatReply:
    """Result of a single provider call.

    Attributes:
        reply: The generated text, empty when the call failed.
        error: Why the call failed, None on success.
    """

    reply: str
    error: Optional[ProviderUnavailableError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ChatProvider(ABC):
    name: str
    display_name: str
    description: str = ''
    default_model: str

    def __init__(self, api_base: str):
        self.api_base = api_base.rstrip('/')

    @abstractmethod
    def build_request(
        self, client: httpx.AsyncClient, api_key: str, model: str, message: str, system_prompt: str
    ) -> httpx.Request:
        ...

    @abstractmethod
    def extract_reply(self, data: Dict[str, Any]) -> str:
        ...

    @abstractmethod
    def build_test_request(self, client: httpx.AsyncClient, api_key: str) -> httpx.Request:
        """Cheapest authenticated request that proves a key works."""
        ...

    def catalog_entry(self) -> Dict[str, str]:
        return {
            'id': self.name,
            'name': self.display_name,
            'description': self.description,
            'default_model': self.default_model,
        }

    async def complete(
        self, client: httpx.AsyncClient, api_key: str, model: Optional[str], message: str, system_prompt: str
    ) -> ChatReply:
        request = self.build_request(client, api_key, model or self.default_model, message, system_prompt)
        try:
            r = await client.send(request)
            r.raise_for_status()
            text = self.extract_reply(r.json())
        except httpx.HTTPStatusError as e:
            return self.failed(f"{self.display_name} returned HTTP {e.response.status_code}")
        except httpx.HTTPError as e:
            return self.failed(f"{self.display_name} request failed: {e.__class__.__name__}: {e}")
        except (KeyError, IndexError, TypeError, AttributeError, ValueError) as e:
            return self.failed(f"{self.display_name} returned a malformed response: {e.__class__.__name__}")
        if not text or not text.strip():
            return self.failed(f"{self.display_name} returned no content")
        return ChatReply(reply=text)

    def failed(self, message: str) -> ChatReply:
        return ChatReply(reply='', error=ProviderUnavailableError(self.name, message))
