from __future__ import annotations

"""Notification delivery for stream events.

Posts composed notifications to the configured Discord webhook through a
Hikari REST client. Event types missing from the enabled set are dropped
here; callers keep their own state regardless.
"""

import logging
from dataclasses import dataclass
from typing import AbstractSet, Optional

import hikari
from hikari.files import Bytes

from .embeds import THUMBNAIL_NAME
from .models import EventType

log = logging.getLogger(__name__)

HOOK_NAME = "Stream Notifications"


@dataclass(frozen=True, slots=True)
class WebhookTarget:
	webhook_id: int
	token: str


@dataclass
class Notification:
	"""Text content, one embed and an optional thumbnail attachment."""
	event: EventType
	content: str
	embed: hikari.Embed
	thumbnail: Optional[bytes] = None


class StreamNotifier:
	"""Sends notifications for enabled event types to a webhook."""

	def __init__(
		self,
		target: WebhookTarget,
		enabled_events: AbstractSet[EventType],
		*,
		rest_app: Optional[hikari.RESTApp] = None,
	) -> None:
		self.target = target
		self.enabled_events = frozenset(enabled_events)
		self.rest_app = rest_app or hikari.RESTApp()
		self._started = False

	def is_enabled(self, event: EventType) -> bool:
		return event in self.enabled_events

	async def start(self) -> None:
		if not self._started:
			await self.rest_app.start()
			self._started = True

	async def close(self) -> None:
		if self._started:
			await self.rest_app.close()
			self._started = False

	async def send(self, notification: Notification) -> bool:
		"""Execute the webhook; returns whether a message was delivered.

		Delivery is best-effort: failures are logged and reported as False.
		"""
		if not self.is_enabled(notification.event):
			log.debug("Skipping disabled %s notification", notification.event.value)
			return False
		embed = notification.embed
		if notification.thumbnail:
			embed.set_image(Bytes(notification.thumbnail, THUMBNAIL_NAME))
		try:
			await self.start()
			async with self.rest_app.acquire(None) as rest:
				await rest.execute_webhook(
					self.target.webhook_id,
					self.target.token,
					content=notification.content or hikari.UNDEFINED,
					username=HOOK_NAME,
					embeds=[embed],
					role_mentions=True,
				)
		except Exception:
			log.exception("Failed to send %s notification", notification.event.value)
			return False
		return True
