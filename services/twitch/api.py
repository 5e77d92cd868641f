import logging
from typing import List, Literal, Optional

import httpx
from pydantic import ValidationError

from constants import (
    EVENTSUB_SUBSCRIPTIONS_URL,
    EVENTSUB_VERSION,
    STREAMS_URL,
    WEBHOOK_TRANSPORT,
)
from models import Stream, StreamResponse, Subscription, SubscriptionResponse
from services.errors import (
    CreateError,
    DeleteError,
    FetchError,
    ListError,
    RateLimited,
)
from services.helper.http_client import HttpClientManager
from services.twitch.token_manager import TwitchTokenManager

logger = logging.getLogger(__name__)


def _is_success(response: httpx.Response) -> bool:
    return 200 <= response.status_code < 300


class TwitchApi:
    """Helix calls used by the notifier: EventSub subscriptions and live streams."""

    def __init__(
        self, token_manager: TwitchTokenManager, http_client: HttpClientManager
    ) -> None:
        self._token_manager = token_manager
        self._http_client = http_client

    async def _headers(self) -> dict[str, str]:
        token = await self._token_manager.acquire()
        return {
            "Client-ID": self._token_manager.client_id,
            "Authorization": f"Bearer {token}",
        }

    async def call_twitch(
        self,
        method: Literal["GET", "POST", "DELETE"],
        url: str,
        *,
        params: Optional[dict] = None,
        json: Optional[dict] = None,
    ) -> httpx.Response:
        headers = await self._headers()
        response = await self._http_client.request(
            method, url, headers=headers, params=params, json=json
        )

        if response.status_code == 401:
            logger.warning("Unauthorized request, refreshing token...")
            await self._token_manager.refresh()
            headers = await self._headers()
            response = await self._http_client.request(
                method, url, headers=headers, params=params, json=json
            )
        return response

    async def list_subscriptions(
        self, event_type: str, broadcaster_id: str
    ) -> List[Subscription]:
        subscriptions: List[Subscription] = []
        cursor: Optional[str] = None

        while True:
            # Helix accepts a single filter per listing call
            params = {"type": event_type}
            if cursor:
                params["after"] = cursor

            try:
                response = await self.call_twitch(
                    "GET", EVENTSUB_SUBSCRIPTIONS_URL, params=params
                )
            except httpx.HTTPError as e:
                raise ListError(f"Error listing subscriptions: {e}") from e

            if response.status_code == 429:
                raise RateLimited(
                    "Subscription listing rate limited",
                    response.status_code,
                    response.text,
                )
            if not _is_success(response):
                raise ListError(
                    "Error listing subscriptions", response.status_code, response.text
                )

            try:
                subscription_response = SubscriptionResponse.model_validate(
                    response.json()
                )
            except (ValueError, ValidationError) as e:
                raise ListError(
                    "Malformed subscription listing",
                    response.status_code,
                    response.text,
                ) from e

            subscriptions.extend(
                subscription
                for subscription in subscription_response.data
                if subscription.type == event_type
                and subscription.condition.broadcaster_user_id == broadcaster_id
            )
            cursor = subscription_response.pagination.cursor
            if not subscription_response.data or not cursor:
                break

        return subscriptions

    async def create_subscription(
        self, event_type: str, broadcaster_id: str, callback_url: str, secret: str
    ) -> None:
        body = {
            "type": event_type,
            "version": EVENTSUB_VERSION,
            "condition": {"broadcaster_user_id": broadcaster_id},
            "transport": {
                "method": WEBHOOK_TRANSPORT,
                "callback": callback_url,
                "secret": secret,
            },
        }
        try:
            response = await self.call_twitch(
                "POST", EVENTSUB_SUBSCRIPTIONS_URL, json=body
            )
        except httpx.HTTPError as e:
            raise CreateError(f"Error creating subscription: {e}") from e

        if not _is_success(response):
            raise CreateError(
                "Error creating subscription", response.status_code, response.text
            )

    async def delete_subscription(self, subscription_id: str) -> None:
        try:
            response = await self.call_twitch(
                "DELETE", EVENTSUB_SUBSCRIPTIONS_URL, params={"id": subscription_id}
            )
        except httpx.HTTPError as e:
            raise DeleteError(f"Error deleting subscription {subscription_id}: {e}") from e

        if not _is_success(response):
            raise DeleteError(
                f"Error deleting subscription {subscription_id}",
                response.status_code,
                response.text,
            )

    async def get_stream_info(self, broadcaster_id: str) -> Optional[Stream]:
        """Return the live stream of a broadcaster, or None when they are offline."""
        try:
            response = await self.call_twitch(
                "GET", STREAMS_URL, params={"user_id": broadcaster_id}
            )
        except httpx.HTTPError as e:
            raise FetchError(f"Failed to fetch stream info: {e}") from e

        if not _is_success(response):
            raise FetchError(
                "Failed to fetch stream info", response.status_code, response.text
            )

        try:
            stream_response = StreamResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise FetchError(
                "Malformed stream info", response.status_code, response.text
            ) from e
        return stream_response.data[0] if stream_response.data else None
