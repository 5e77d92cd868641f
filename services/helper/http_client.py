import asyncio
import logging
from typing import Optional

import httpx
import sentry_sdk

logger = logging.getLogger(__name__)


class HttpClientManager:
    """Lazily creates and shares one pooled httpx client for every upstream call."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self._client: Optional[httpx.AsyncClient] = None
        self._lock = asyncio.Lock()
        self._transport = transport

    async def get_client(self) -> httpx.AsyncClient:
        """Get the shared HTTP client, creating it if necessary"""
        if self._client is None:
            async with self._lock:
                if self._client is None:
                    self._client = httpx.AsyncClient(
                        limits=httpx.Limits(
                            max_keepalive_connections=20,
                            max_connections=50,
                            keepalive_expiry=30.0,
                        ),
                        timeout=httpx.Timeout(
                            connect=10.0, read=30.0, write=10.0, pool=10.0
                        ),
                        http2=self._transport is None,
                        follow_redirects=True,
                        transport=self._transport,
                    )
                    logger.info("Shared HTTP client initialized")
        return self._client

    async def close(self) -> None:
        """Close the HTTP client and clean up resources"""
        if self._client is not None:
            async with self._lock:
                if self._client is not None:
                    await self._client.aclose()
                    self._client = None
                    logger.info("Shared HTTP client closed")

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[dict] = None,
        params: Optional[dict] = None,
        json: Optional[dict] = None,
        data: Optional[dict] = None,
        **kwargs,
    ) -> httpx.Response:
        """Make an HTTP request using the shared client"""
        client = await self.get_client()
        try:
            return await client.request(
                method=method,
                url=url,
                headers=headers,
                params=params,
                json=json,
                data=data,
                **kwargs,
            )
        except httpx.HTTPError as e:
            logger.error(f"HTTP request failed: {method} {url} - {e}")
            sentry_sdk.capture_exception(e)
            raise
