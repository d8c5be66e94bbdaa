from __future__ import annotations

"""Background polling loop driving the stream watchers."""

import asyncio
import logging
from typing import Iterable, Optional

import aiohttp

from .models import StreamSnapshot
from .twitch_api import TwitchApi
from .twitch_client import TwitchError
from .watcher import FATAL_ERRORS, StreamWatcher

log = logging.getLogger(__name__)

# Snapshot failures that only cost one tick
TRANSIENT_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, OSError, TwitchError)


class StreamMonitor:
	"""Polls all watched channels in one request per tick and fans out.

	Ticks never overlap: the next sleep starts only after every watcher has
	processed the current tick. A failed snapshot fetch skips the tick instead
	of reporting the channels as offline.
	"""

	def __init__(
		self,
		api: TwitchApi,
		watchers: Iterable[StreamWatcher],
		*,
		interval_seconds: float = 10,
	) -> None:
		self.api = api
		self.watchers: dict[str, StreamWatcher] = {w.login: w for w in watchers}
		self.interval_seconds = max(1.0, float(interval_seconds))
		self._task: Optional[asyncio.Task] = None

	def start(self) -> None:
		"""Start the monitoring task if not already running."""
		if self._task is None or self._task.done():
			log.info("Listening for streams from %s", ", ".join(sorted(self.watchers)))
			self._task = asyncio.create_task(self._run_loop(), name="stream-monitor")

	async def stop(self) -> None:
		"""Cancel and await the monitoring task if running."""
		if self._task and not self._task.done():
			self._task.cancel()
			try:
				await self._task
			except asyncio.CancelledError:
				pass

	async def wait(self) -> None:
		"""Wait for the loop to end, re-raising the fatal error that ended it."""
		if self._task is not None:
			await self._task

	async def _run_loop(self) -> None:
		"""Main loop: fetch → fan out → sleep. Only fatal errors escape."""
		try:
			while True:
				await self.tick()
				await asyncio.sleep(self.interval_seconds)
		except FATAL_ERRORS:
			log.critical("Stream monitor terminated by a fatal error", exc_info=True)
			raise

	async def tick(self) -> bool:
		"""Run one poll cycle; returns False when the snapshot fetch failed."""
		try:
			snapshots = await self.api.get_snapshots(self.watchers.keys())
		except FATAL_ERRORS:
			raise
		except TRANSIENT_ERRORS as exc:
			log.warning("Skipping tick, could not fetch streams: %r", exc)
			return False
		except Exception:
			log.exception("Skipping tick, unexpected error fetching streams")
			return False

		by_login: dict[str, StreamSnapshot] = {s.channel_login.lower(): s for s in snapshots}
		logins = list(self.watchers)
		results = await asyncio.gather(
			*(self.watchers[login].handle(by_login.get(login)) for login in logins),
			return_exceptions=True,
		)
		for login, result in zip(logins, results):
			if isinstance(result, FATAL_ERRORS):
				raise result
			if isinstance(result, BaseException):
				if isinstance(result, asyncio.CancelledError):
					raise result
				log.error("Error in stream watcher for %s", login, exc_info=result)
		return True
