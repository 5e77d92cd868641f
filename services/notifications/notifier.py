import logging
from typing import Optional, Protocol

import discord
import pendulum

from constants import (
    PREVIEW_IMAGE_URL,
    PROFILE_IMAGE_URL,
    THUMBNAIL_SIZE,
    TWITCH_FAVICON,
    TWITCH_PURPLE,
    TWITCH_URL,
)
from models import Stream
from services.helper.helper import parse_rfc3339

logger = logging.getLogger(__name__)


class MessageSender(Protocol):
    async def send_rich_message(self, channel_id: int, embed: discord.Embed) -> None:
        ...


def _get_twitch_url(user_login: str) -> str:
    """Generate Twitch channel URL from user login."""
    return f"{TWITCH_URL}/{user_login}"


def create_stream_online_embed(stream: Stream) -> discord.Embed:
    """Create the Discord embed for a live stream notification."""
    url = _get_twitch_url(stream.user_login)
    cache_buster = int(pendulum.now().timestamp())
    preview_url = PREVIEW_IMAGE_URL.format(user_login=stream.user_login)
    thumbnail_url = stream.thumbnail_url.replace("{width}x{height}", THUMBNAIL_SIZE)

    embed = (
        discord.Embed(
            title=f"🔴 {stream.user_name} is live!",
            url=url,
            color=TWITCH_PURPLE,
            timestamp=parse_rfc3339(stream.started_at),
        )
        .set_author(
            name=stream.user_name,
            url=url,
            icon_url=PROFILE_IMAGE_URL.format(user_id=stream.user_id),
        )
        .add_field(name="📝 Title", value=stream.title or "-", inline=False)
        .add_field(name="🎮 Game", value=stream.game_name or "-", inline=True)
        .add_field(name="👀 Viewers", value=f"{stream.viewer_count}", inline=True)
        .set_image(url=f"{preview_url}?cb={cache_buster}")
        .set_footer(text="Watch on Twitch!", icon_url=TWITCH_FAVICON)
    )
    if thumbnail_url:
        embed.set_thumbnail(url=thumbnail_url)
    return embed


class LiveNotifier:
    def __init__(self, sender: MessageSender, default_channel_id: int) -> None:
        self._sender = sender
        self._default_channel_id = default_channel_id

    async def dispatch(self, stream: Stream, channel_id: Optional[int] = None) -> None:
        channel_id = channel_id or self._default_channel_id
        embed = create_stream_online_embed(stream)
        await self._sender.send_rich_message(channel_id, embed)
        logger.info(
            f"Live notification for {stream.user_name} sent to channel {channel_id}"
        )
