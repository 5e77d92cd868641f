from .twitch import WebhookHandler, twitch_router

__all__ = ["WebhookHandler", "twitch_router"]
