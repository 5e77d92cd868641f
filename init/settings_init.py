import os
from typing import Mapping, Optional

from dotenv import load_dotenv

from models import Settings
from services.errors import ConfigError

REQUIRED_VARIABLES = [
    "DISCORD_TOKEN",
    "TWITCH_CLIENT_ID",
    "TWITCH_CLIENT_SECRET",
    "TWITCH_WEBHOOK_SECRET",
    "CALLBACK_URL",
    "NOTIFY_CHANNEL_ID",
]


def _split_ids(value: Optional[str]) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(part.strip() for part in value.split(",") if part.strip())


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Read the service settings from the environment (and a .env file if present)."""
    if environ is None:
        load_dotenv()
        environ = os.environ

    missing = [name for name in REQUIRED_VARIABLES if not environ.get(name)]
    if missing:
        raise ConfigError(missing)

    values = {
        "discord_token": environ["DISCORD_TOKEN"],
        "twitch_client_id": environ["TWITCH_CLIENT_ID"],
        "twitch_client_secret": environ["TWITCH_CLIENT_SECRET"],
        "twitch_webhook_secret": environ["TWITCH_WEBHOOK_SECRET"],
        "callback_url": environ["CALLBACK_URL"],
        "notify_channel_id": environ["NOTIFY_CHANNEL_ID"],
        "twitch_broadcaster_ids": _split_ids(environ.get("TWITCH_BROADCASTER_IDS")),
    }
    optional = {
        "port": "PORT",
        "log_level": "LOG_LEVEL",
        "sentry_dsn": "SENTRY_DSN",
        "reconcile_interval_seconds": "RECONCILE_INTERVAL_SECONDS",
        "shutdown_grace_seconds": "SHUTDOWN_GRACE_SECONDS",
    }
    for field, name in optional.items():
        if environ.get(name):
            values[field] = environ[name]

    return Settings.model_validate(values)
