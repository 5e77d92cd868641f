import asyncio
import logging
from typing import Iterable

from constants import STREAM_ONLINE
from services.errors import DeleteError, RateLimited
from services.helper.helper import handle_error
from services.twitch.api import TwitchApi

logger = logging.getLogger(__name__)


class SubscriptionReconciler:
    """
    Keeps exactly one EventSub webhook subscription per watched broadcaster
    pointed at the current callback URL.

    Upstream is the only source of truth: every pass lists what exists,
    deletes subscriptions whose callback is stale and creates the missing one.
    """

    def __init__(self, twitch_api: TwitchApi) -> None:
        self._twitch_api = twitch_api

    async def reconcile(
        self, broadcaster_id: str, event_type: str, callback_url: str, secret: str
    ) -> None:
        try:
            subscriptions = await self._twitch_api.list_subscriptions(
                event_type, broadcaster_id
            )
        except RateLimited:
            logger.warning(
                f"Twitch subscription rate limit reached, skipping {event_type} check for broadcaster {broadcaster_id}"
            )
            return None

        for subscription in subscriptions:
            if subscription.transport.callback == callback_url:
                logger.info(
                    f"Valid {event_type} subscription exists for broadcaster {broadcaster_id} (id={subscription.id}), no action needed"
                )
                return None

            try:
                await self._twitch_api.delete_subscription(subscription.id)
                logger.info(
                    f"Deleted outdated subscription id={subscription.id} (callback={subscription.transport.callback})"
                )
            except DeleteError as e:
                logger.warning(f"Failed to delete old subscription {subscription.id}: {e}")

        logger.info(
            f"Creating {event_type} subscription for broadcaster {broadcaster_id} with callback {callback_url}"
        )
        await self._twitch_api.create_subscription(
            event_type, broadcaster_id, callback_url, secret
        )
        logger.info(f"Subscription created for broadcaster {broadcaster_id}")

    async def reconcile_all(
        self,
        broadcaster_ids: Iterable[str],
        callback_url: str,
        secret: str,
        event_type: str = STREAM_ONLINE,
    ) -> dict[str, bool]:
        """Reconcile every broadcaster concurrently; one failure never stops the others."""
        broadcaster_ids = list(broadcaster_ids)
        results = await asyncio.gather(
            *(
                self.reconcile(broadcaster_id, event_type, callback_url, secret)
                for broadcaster_id in broadcaster_ids
            ),
            return_exceptions=True,
        )

        outcome: dict[str, bool] = {}
        for broadcaster_id, result in zip(broadcaster_ids, results):
            if isinstance(result, Exception):
                handle_error(
                    result,
                    f"Error subscribing to {event_type} for broadcaster {broadcaster_id}",
                )
                outcome[broadcaster_id] = False
            else:
                outcome[broadcaster_id] = True
        logger.info(
            f"Subscriptions reconciled for broadcaster IDs: {', '.join(broadcaster_ids) or 'none'}"
        )
        return outcome

    async def reconcile_forever(
        self,
        broadcaster_ids: Iterable[str],
        callback_url: str,
        secret: str,
        interval: float,
    ) -> None:
        broadcaster_ids = tuple(broadcaster_ids)
        while True:
            await asyncio.sleep(interval)
            logger.info("Running scheduled subscription reconciliation")
            await self.reconcile_all(broadcaster_ids, callback_url, secret)
