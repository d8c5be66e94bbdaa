from __future__ import annotations

"""Edited and deleted message log for the watched guild.

Recent guild messages are kept in a small cache so an edit can show the old
content and a delete can show what was removed. Log embeds go to the
message-logs webhook.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Union

import hikari

from .cache import BoundedCache
from .notifier import WebhookTarget

log = logging.getLogger(__name__)

EDIT_COLOR = 0x7289DA
DELETE_COLOR = 0xFF0000
MESSAGE_CACHE_SIZE = 50
FIELD_LIMIT = 1024
DESCRIPTION_LIMIT = 4096


@dataclass(frozen=True)
class CachedMessage:
	user_id: int
	user_tag: str
	content: str


def _clip(text: str, limit: int) -> str:
	if not text:
		return "\u200b"
	return text if len(text) <= limit else text[: limit - 1] + "…"


def _channel_label(event: Union[hikari.GuildMessageUpdateEvent, hikari.GuildMessageDeleteEvent]) -> str:
	channel = event.get_channel()
	return f"#{channel.name}" if channel is not None and channel.name else f"#{event.channel_id}"


class MessageLogger:
	"""Posts "Message Edited" and "Message Deleted" embeds to a webhook."""

	def __init__(
		self,
		target: WebhookTarget,
		*,
		guild_id: int = 0,
		rest_app: Optional[hikari.RESTApp] = None,
		cache_size: int = MESSAGE_CACHE_SIZE,
	) -> None:
		self.target = target
		self.guild_id = guild_id
		self.rest_app = rest_app or hikari.RESTApp()
		self.messages: BoundedCache[int, CachedMessage] = BoundedCache(cache_size)
		self._started = False

	def subscribe(self, bot: hikari.GatewayBot) -> None:
		bot.subscribe(hikari.GuildMessageCreateEvent, self.on_create)
		bot.subscribe(hikari.GuildMessageUpdateEvent, self.on_update)
		bot.subscribe(hikari.GuildMessageDeleteEvent, self.on_delete)

	def _watched(self, guild_id: int) -> bool:
		return not self.guild_id or int(guild_id) == self.guild_id

	async def on_create(self, event: hikari.GuildMessageCreateEvent) -> None:
		if not self._watched(event.guild_id):
			return
		message = event.message
		self.messages.put(
			int(message.id),
			CachedMessage(int(message.author.id), str(message.author), message.content or ""),
		)

	async def on_update(self, event: hikari.GuildMessageUpdateEvent) -> None:
		if not self._watched(event.guild_id):
			return
		old = self.messages.get(int(event.message_id))
		if old is None:
			return
		message = event.message
		content = message.content
		# Embed resolution also fires updates, only real edits count
		if message.edited_timestamp is None or content is hikari.UNDEFINED:
			return
		content = content or ""
		if content == old.content:
			return

		author = event.author
		self.messages.put(
			int(event.message_id),
			CachedMessage(int(author.id), str(author), content) if author else CachedMessage(old.user_id, old.user_tag, content),
		)
		embed = hikari.Embed(color=EDIT_COLOR, timestamp=message.edited_timestamp)
		embed.set_author(name=f"Message Edited {old.user_tag} ({old.user_id})")
		embed.add_field(name="Old Content", value=_clip(old.content, FIELD_LIMIT), inline=False)
		embed.add_field(name="New Content", value=_clip(content, FIELD_LIMIT), inline=False)
		embed.set_footer(_channel_label(event))
		await self.send(embed)

	async def on_delete(self, event: hikari.GuildMessageDeleteEvent) -> None:
		if not self._watched(event.guild_id):
			return
		old = self.messages.pop(int(event.message_id))
		embed = hikari.Embed(color=DELETE_COLOR, timestamp=datetime.now(timezone.utc))
		if old is not None:
			embed.description = _clip(old.content, DESCRIPTION_LIMIT)
			embed.set_author(name=f"Message Deleted from {old.user_tag} ({old.user_id})")
		else:
			embed.title = "Message Deleted"
			embed.description = "Unknown Content (too old)"
		embed.set_footer(_channel_label(event))
		await self.send(embed)

	async def send(self, embed: hikari.Embed) -> bool:
		try:
			if not self._started:
				await self.rest_app.start()
				self._started = True
			async with self.rest_app.acquire(None) as rest:
				await rest.execute_webhook(self.target.webhook_id, self.target.token, embeds=[embed])
		except Exception:
			log.warning("Failed to post message log", exc_info=True)
			return False
		return True

	async def close(self) -> None:
		if self._started:
			await self.rest_app.close()
			self._started = False
