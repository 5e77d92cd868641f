import asyncio
import logging
from typing import Optional

import httpx
import pendulum
from pydantic import ValidationError

from constants import TWITCH_TOKEN_URL
from models import AuthResponse
from services.errors import AuthError
from services.helper.http_client import HttpClientManager

logger = logging.getLogger(__name__)


class TwitchTokenManager:
    """Holds the app access token obtained through the client-credentials grant."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        http_client: HttpClientManager,
    ) -> None:
        self._client_id = client_id
        self._client_secret = client_secret
        self._http_client = http_client
        self._app_access_token: str = ""
        self._expires_at: Optional[pendulum.DateTime] = None
        self._lock = asyncio.Lock()

    @property
    def client_id(self) -> str:
        return self._client_id

    @property
    def app_access_token(self) -> str:
        return self._app_access_token

    @property
    def is_expired(self) -> bool:
        return self._expires_at is not None and pendulum.now("UTC") >= self._expires_at

    async def acquire(self) -> str:
        """Return the held token, fetching one first if none is held yet."""
        if self._app_access_token and not self.is_expired:
            return self._app_access_token
        return await self.refresh()

    async def refresh(self) -> str:
        async with self._lock:
            params = {
                "client_id": self._client_id,
                "client_secret": self._client_secret,
                "grant_type": "client_credentials",
            }
            try:
                response = await self._http_client.request(
                    "POST", TWITCH_TOKEN_URL, params=params
                )
            except httpx.HTTPError as e:
                raise AuthError(f"Token request failed: {e}") from e

            if response.status_code < 200 or response.status_code >= 300:
                logger.error(f"Token refresh failed with status={response.status_code}")
                raise AuthError(
                    "Failed to obtain app access token",
                    response.status_code,
                    response.text,
                )

            try:
                auth_response = AuthResponse.model_validate(response.json())
            except (ValueError, ValidationError) as e:
                raise AuthError(
                    "Malformed token response", response.status_code, response.text
                ) from e

            if auth_response.token_type.lower() != "bearer":
                logger.error(
                    f"Unexpected token type received: {auth_response.token_type}"
                )
                raise AuthError(
                    f"Unexpected token type: {auth_response.token_type}",
                    response.status_code,
                    response.text,
                )

            self._app_access_token = auth_response.access_token
            self._expires_at = pendulum.now("UTC").add(
                seconds=auth_response.expires_in
            )
            logger.info("App access token acquired")
            return self._app_access_token
