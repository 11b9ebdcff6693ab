"""
HTTP client for the mentor gateway: one POST per step, response read as an
incremental event stream.
"""

from __future__ import annotations

import logging
from typing import AsyncIterator, Optional

import httpx

from agents.core.cancellation import CancellationToken, guarded
from agents.mentor_agent.types import GatewayRequest
from infra.gateway.sse import SSEDecoder

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """The gateway was unreachable or answered with a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


async def _next_chunk(chunks: AsyncIterator[bytes]) -> Optional[bytes]:
    try:
        return await chunks.__anext__()
    except StopAsyncIteration:
        return None


class GatewayClient:
    def __init__(
        self,
        url: str,
        *,
        api_key: Optional[str] = None,
        access_token: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ):
        self.url = url
        self._api_key = api_key
        self._access_token = access_token
        self._http_client = http_client
        self._timeout = timeout

    @classmethod
    def from_settings(
        cls,
        settings,
        http_client: Optional[httpx.AsyncClient] = None,
        access_token: Optional[str] = None,
    ) -> "GatewayClient":
        return cls(
            settings.gateway_url,
            api_key=settings.gateway_api_key,
            access_token=access_token,
            http_client=http_client,
        )

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json", "Accept": "text/event-stream"}
        # The service key wins over the user's token when both are set.
        credential = self._api_key or self._access_token
        if credential:
            headers["Authorization"] = f"Bearer {credential}"
        return headers

    async def stream(
        self,
        request: GatewayRequest,
        *,
        cancel: Optional[CancellationToken] = None,
    ) -> AsyncIterator[str]:
        """
        Yield text fragments in arrival order. A stream that closes without any
        fragment simply yields nothing.
        """
        owns_client = self._http_client is None
        client = self._http_client or httpx.AsyncClient(timeout=self._timeout)
        try:
            async with client.stream(
                "POST", self.url, json=request.to_payload(), headers=self._headers()
            ) as response:
                if not response.is_success:
                    await response.aread()
                    logger.warning(
                        "gateway error status=%s step=%s body=%s",
                        response.status_code,
                        request.step_type.value,
                        response.text[:200],
                    )
                    raise GatewayError(
                        f"Gateway returned status {response.status_code}",
                        status_code=response.status_code,
                    )

                decoder = SSEDecoder()
                chunks = response.aiter_bytes()
                while True:
                    chunk = await guarded(cancel, _next_chunk(chunks))
                    if chunk is None:
                        break
                    for fragment in decoder.feed(chunk):
                        yield fragment
                for fragment in decoder.flush():
                    yield fragment
        except httpx.HTTPError as exc:
            raise GatewayError(f"Gateway request failed: {exc}") from exc
        finally:
            if owns_client:
                await client.aclose()

    async def collect(
        self,
        request: GatewayRequest,
        *,
        cancel: Optional[CancellationToken] = None,
    ) -> str:
        """Accumulate the whole stream into one string."""
        parts = [fragment async for fragment in self.stream(request, cancel=cancel)]
        return "".join(parts)
