from typing import Optional, Tuple

from pydantic import BaseModel, Field

from constants import WEBHOOK_PATH


class Settings(BaseModel):
    port: int = 8000
    discord_token: str
    twitch_client_id: str
    twitch_client_secret: str
    twitch_webhook_secret: str
    callback_url: str
    twitch_broadcaster_ids: Tuple[str, ...] = ()
    notify_channel_id: int
    log_level: str = "INFO"
    sentry_dsn: Optional[str] = None
    reconcile_interval_seconds: float = Field(default=0, ge=0)
    shutdown_grace_seconds: float = Field(default=10, ge=0)

    model_config = {"frozen": True}

    @property
    def webhook_callback_url(self) -> str:
        return f"{self.callback_url.rstrip('/')}{WEBHOOK_PATH}"
