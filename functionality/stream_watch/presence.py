from __future__ import annotations

"""Bot presence reflecting what the watched channels are streaming."""

import asyncio
import logging
from typing import Any, Optional, Protocol

import hikari

log = logging.getLogger(__name__)

ROTATE_SECONDS = 15


class PresenceApp(Protocol):
	async def update_presence(self, *, activity: Any = ...) -> None: ...


class ActivityPublisher:
	"""Keeps one streaming activity per live channel and shows them in turn.

	set_activity/clear_activity publish immediately; start() additionally
	rotates through the activities when several channels are live.
	"""

	def __init__(self, app: PresenceApp, *, rotate_seconds: float = ROTATE_SECONDS) -> None:
		self.app = app
		self.rotate_seconds = rotate_seconds
		self._activities: dict[str, hikari.Activity] = {}
		self._shown: Optional[hikari.Activity] = None
		self._index = 0
		self._task: Optional[asyncio.Task] = None

	@property
	def activities(self) -> list[hikari.Activity]:
		return list(self._activities.values())

	async def set_activity(self, key: str, text: str, url: str) -> None:
		activity = hikari.Activity(name=text or key, url=url, type=hikari.ActivityType.STREAMING)
		self._activities[key] = activity
		await self._publish(activity)

	async def clear_activity(self, key: str) -> None:
		if self._activities.pop(key, None) is None:
			return
		remaining = self.activities
		await self._publish(remaining[-1] if remaining else None)

	async def _publish(self, activity: Optional[hikari.Activity]) -> None:
		if activity == self._shown:
			return
		try:
			await self.app.update_presence(activity=activity)
		except Exception:
			log.warning("Failed to update presence", exc_info=True)
			return
		self._shown = activity

	async def rotate(self) -> None:
		"""Show the next activity (or none)."""
		items = self.activities
		if not items:
			await self._publish(None)
			return
		self._index = (self._index + 1) % len(items)
		await self._publish(items[self._index])

	def start(self) -> None:
		if self._task is None or self._task.done():
			self._task = asyncio.create_task(self._run_loop(), name="presence-rotation")

	async def stop(self) -> None:
		if self._task and not self._task.done():
			self._task.cancel()
			try:
				await self._task
			except asyncio.CancelledError:
				pass

	async def _run_loop(self) -> None:
		while True:
			await asyncio.sleep(self.rotate_seconds)
			await self.rotate()
