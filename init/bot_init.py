import logging

import discord
from discord import CategoryChannel, ForumChannel
from discord.abc import PrivateChannel

from services.errors import SendError

logger = logging.getLogger(__name__)


class NotifierBot(discord.Client):
    """Discord client used only to post notifications; it registers no commands."""

    def __init__(self) -> None:
        intents = discord.Intents.default()
        intents.guilds = True
        super().__init__(intents=intents)

    async def on_ready(self) -> None:
        logger.info(f"Discord session opened as {self.user}")
        await self.change_presence(activity=discord.CustomActivity(name="Watching Twitch"))

    async def send_rich_message(self, channel_id: int, embed: discord.Embed) -> None:
        channel = self.get_channel(channel_id)
        try:
            if channel is None:
                channel = await self.fetch_channel(channel_id)
        except discord.DiscordException as e:
            raise SendError(f"Channel {channel_id} is not reachable: {e}", channel_id) from e

        if isinstance(channel, (ForumChannel, CategoryChannel, PrivateChannel)):
            raise SendError(
                f"Channel {channel_id} cannot receive messages", channel_id
            )

        try:
            await channel.send(embed=embed)
        except discord.DiscordException as e:
            raise SendError(
                f"Failed to send embed to channel {channel_id}: {e}", channel_id
            ) from e
