import truststore

truststore.inject_into_ssl()


import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from typing import Optional

import sentry_sdk
from fastapi import FastAPI
from pydantic import ValidationError
from rich.logging import RichHandler

from controller import WebhookHandler, twitch_router
from init import NotifierBot, load_settings
from models import Settings
from services.errors import ConfigError
from services.helper.helper import handle_error
from services.helper.http_client import HttpClientManager
from services.notifications import LiveNotifier, MessageSender
from services.twitch.api import TwitchApi
from services.twitch.subscriptions import SubscriptionReconciler
from services.twitch.token_manager import TwitchTokenManager

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler()],
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)


async def _run_bot(bot: NotifierBot, token: str) -> None:
    try:
        await bot.start(token)
    except Exception as e:
        handle_error(e, "Discord client stopped unexpectedly")


def create_app(
    settings: Settings,
    http_client: Optional[HttpClientManager] = None,
    sender: Optional[MessageSender] = None,
) -> FastAPI:
    """
    Wire the notifier together.

    Startup acquires the app token (fatal on failure), reconciles the EventSub
    subscriptions of every watched broadcaster and only then lets the server
    accept webhook traffic. Passing ``sender`` skips starting the Discord bot.
    """
    http_client = http_client or HttpClientManager()
    token_manager = TwitchTokenManager(
        settings.twitch_client_id, settings.twitch_client_secret, http_client
    )
    twitch_api = TwitchApi(token_manager, http_client)
    reconciler = SubscriptionReconciler(twitch_api)

    bot: Optional[NotifierBot] = None
    if sender is None:
        bot = NotifierBot()
        sender = bot

    notifier = LiveNotifier(sender, settings.notify_channel_id)
    webhook_handler = WebhookHandler(
        settings.twitch_webhook_secret, twitch_api, notifier
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        background: list[asyncio.Task] = []
        if bot is not None:
            background.append(
                asyncio.create_task(_run_bot(bot, settings.discord_token))
            )

        try:
            await token_manager.acquire()
            await reconciler.reconcile_all(
                settings.twitch_broadcaster_ids,
                settings.webhook_callback_url,
                settings.twitch_webhook_secret,
            )
            if settings.reconcile_interval_seconds > 0:
                background.append(
                    asyncio.create_task(
                        reconciler.reconcile_forever(
                            settings.twitch_broadcaster_ids,
                            settings.webhook_callback_url,
                            settings.twitch_webhook_secret,
                            settings.reconcile_interval_seconds,
                        )
                    )
                )
            logger.info(
                f"Twitch webhook listening on port {settings.port} (public callback: {settings.webhook_callback_url})"
            )
            yield
        finally:
            await webhook_handler.drain(settings.shutdown_grace_seconds)
            for task in background:
                task.cancel()
            for task in background:
                with suppress(asyncio.CancelledError):
                    await task
            if bot is not None and not bot.is_closed():
                await bot.close()
            await http_client.close()
            logger.info("Notifier has stopped")

    app = FastAPI(lifespan=lifespan)
    app.state.settings = settings
    app.state.webhook_handler = webhook_handler
    app.state.reconciler = reconciler
    app.state.token_manager = token_manager
    app.include_router(twitch_router)
    return app


def main() -> None:
    import uvicorn

    try:
        settings = load_settings()
    except (ConfigError, ValidationError) as e:
        configure_logging("INFO")
        logger.error(f"Failed to load config: {e}")
        raise SystemExit(1) from e

    configure_logging(settings.log_level)
    if settings.sentry_dsn:
        sentry_sdk.init(dsn=settings.sentry_dsn)

    uvicorn.run(
        create_app(settings),
        host="0.0.0.0",
        port=settings.port,
        log_level=settings.log_level.lower(),
        access_log=True,
        log_config=None,
        timeout_graceful_shutdown=int(settings.shutdown_grace_seconds),
    )


if __name__ == "__main__":
    main()
