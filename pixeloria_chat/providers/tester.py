"""Live validation of provider API keys."""

import asyncio
import logging
from typing import Optional

import httpx

from .base import ChatProvider
from .registry import ProviderRegistry

logger = logging.getLogger(__name__)


class ProviderTester:
    """Checks a key against its provider with one list-models call.

    The outcome is a plain boolean: timeouts, transport failures and non-2xx
    answers all mean "not valid" and are logged, never raised or retried.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.registry = registry
        self.timeout = timeout
        self.transport = transport

    def test_credential(self, provider_id: str, api_key: str) -> bool:
        """Return True iff the provider accepts ``api_key``.

        Raises:
            ProviderNotFoundError: If ``provider_id`` is not in the registry.
        """
        provider = self.registry.get(provider_id)
        if not api_key:
            return False
        return asyncio.run(self._request_models(provider, api_key))

    async def _request_models(self, provider: ChatProvider, api_key: str) -> bool:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            request = provider.build_test_request(client, api_key)
            try:
                r = await asyncio.wait_for(client.send(request), timeout=self.timeout)
            except asyncio.TimeoutError:
                logger.warning(f"[TESTER] {provider.name}: no answer within {self.timeout}s")
                return False
            except httpx.HTTPError as e:
                logger.warning(f"[TESTER] {provider.name}: {e.__class__.__name__}: {e}")
                return False
        logger.info(f"[TESTER] API test for {provider.name}: {r.status_code} {r.reason_phrase}")
        return r.is_success
