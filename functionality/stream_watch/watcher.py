from __future__ import annotations

"""Per-channel stream state machine.

A StreamWatcher receives one observation per poll tick: the channel's
StreamSnapshot, or None when the channel was absent from the live list. It
turns the sequence of observations into live, update and vod notifications:

- offline + snapshot: go live (game, VOD id and thumbnail fetched concurrently)
- live + absent: start the offline grace period; after it elapses, close the
  session and post the VOD with its timestamp index
- live + snapshot: cancel a pending offline; a different game id starts a new
  segment and posts an update

State changes happen whether or not the matching event type is enabled.
"""

import asyncio
import logging
import time
from dataclasses import replace
from typing import Any, Awaitable, Callable, Optional, TypeVar

from .embeds import build_stream_embed, build_update_embed, build_vod_embed, timestamp_line, video_url
from .i18n import DEFAULT_LOCALE, MessageKey, get_text, locale_for
from .models import EMPTY_GAME, EventType, Game, SessionElement, StreamSnapshot, Video, to_twitch_timestamp
from .notifier import Notification, StreamNotifier
from .presence import ActivityPublisher
from .roles import RoleResolver
from .twitch_api import TwitchApi
from .twitch_client import NotAuthorized

log = logging.getLogger(__name__)

T = TypeVar("T")

OFFLINE_DELAY = 2 * 60
# Never degraded into a fallback value
FATAL_ERRORS = (NotAuthorized, MemoryError)


class StreamWatcher:
	"""Tracks the live session of a single channel."""

	def __init__(
		self,
		login: str,
		api: TwitchApi,
		notifier: StreamNotifier,
		*,
		roles: Optional[RoleResolver] = None,
		activity: Optional[ActivityPublisher] = None,
		offline_delay: int = OFFLINE_DELAY,
		top_clips: int = 0,
		clock: Callable[[], float] = time.time,
	) -> None:
		self.login = login.lower()
		self.api = api
		self.notifier = notifier
		self.roles = roles
		self.activity = activity
		self.offline_delay = max(0, int(offline_delay))
		self.top_clips = max(0, min(int(top_clips), 5))
		self.clock = clock

		self.current: Optional[SessionElement] = None
		self.offline_since = 0
		self.stream_started = 0
		self.history: list[SessionElement] = []
		self.channel_id = ""
		self.locale = DEFAULT_LOCALE

	@property
	def is_live(self) -> bool:
		return self.current is not None

	@property
	def channel_url(self) -> str:
		return f"https://www.twitch.tv/{self.login}"

	def _now(self) -> int:
		return int(self.clock())

	async def handle(self, snapshot: Optional[StreamSnapshot]) -> None:
		"""Apply one poll observation to the state machine."""
		if self.current is None:
			if snapshot is not None:
				await self._go_live(snapshot)
			return
		if snapshot is None:
			await self._handle_absent()
			return
		# Any live snapshot cancels a pending offline
		self.offline_since = 0
		self.channel_id = snapshot.channel_id or self.channel_id
		if snapshot.game_id != self.current.game.game_id:
			await self._change_game(snapshot)
		elif not self.current.video_id:
			video_id = await self._video_id()
			if video_id and self.current is not None:
				self.current = replace(self.current, video_id=video_id)

	# EVENTS

	async def _go_live(self, snapshot: StreamSnapshot) -> None:
		self.offline_since = 0
		self.channel_id = snapshot.channel_id
		self.stream_started = snapshot.started_at
		self.locale = locale_for(snapshot.language)
		self.history.clear()

		wants_live = self.notifier.is_enabled(EventType.LIVE)
		game, video_id, thumbnail = await asyncio.gather(
			self._game(snapshot),
			self._video_id(),
			self._thumbnail(snapshot.thumbnail_url) if wants_live else _none(),
		)
		self.current = SessionElement(game, 0, video_id or "")
		log.info("%s started streaming with game %s (%s)", self.login, game.name, game.game_id)
		await self._set_activity(game)

		if wants_live:
			mention = await self._mention(EventType.LIVE)
			content = get_text(self.locale, MessageKey.LIVE_CONTENT, mention=mention, login=self.login, game=game.name)
			await self.notifier.send(Notification(
				EventType.LIVE,
				content.strip(),
				build_stream_embed(snapshot, game, self.locale),
				thumbnail,
			))

	async def _change_game(self, snapshot: StreamSnapshot) -> None:
		assert self.current is not None
		previous = self.current
		log.info("%s changed game %s -> %s", self.login, previous.game.game_id, snapshot.game_id)
		self.history.append(previous)

		wants_update = self.notifier.is_enabled(EventType.UPDATE)
		video_id = previous.video_id
		game, fetched_id, thumbnail = await asyncio.gather(
			self._game(snapshot),
			_none() if video_id else self._video_id(),
			self._thumbnail(snapshot.thumbnail_url) if wants_update else _none(),
		)
		video_id = video_id or fetched_id or ""
		offset = max(0, self._now() - self.stream_started)
		self.current = SessionElement(game, offset, video_id)
		await self._set_activity(game)

		if wants_update:
			mention = await self._mention(EventType.UPDATE)
			content = get_text(self.locale, MessageKey.UPDATE_CONTENT, mention=mention, login=self.login, game=game.name)
			await self.notifier.send(Notification(
				EventType.UPDATE,
				content.strip(),
				build_update_embed(snapshot, game, self.locale, video_id=video_id, offset=offset),
				thumbnail,
			))

	async def _handle_absent(self) -> None:
		now = self._now()
		if self.offline_since == 0:
			log.debug("%s missing from live streams, waiting %ss before going offline", self.login, self.offline_delay)
			self.offline_since = now
			return
		if now - self.offline_since < self.offline_delay:
			return
		await self._go_offline()

	async def _go_offline(self) -> None:
		assert self.current is not None
		log.info("%s went offline", self.login)
		current = self.current
		if not current.video_id:
			current = replace(current, video_id=await self._video_id() or "")
		self.history.append(current)
		self.current = None
		segments = list(self.history)
		self.history.clear()
		offline_at = self.offline_since or self._now()
		self.offline_since = 0
		await self._clear_activity()

		if not self.notifier.is_enabled(EventType.VOD):
			return

		video, missing = await self._resolve_video(segments)
		vid = video.id if video else ""
		# Segments of deleted VODs point at the surviving one instead
		lines = [
			timestamp_line(replace(s, video_id=vid) if s.video_id in missing else s, vid)
			for s in segments
		]
		clips = await self._clips()
		title = video.title if video and video.title else get_text(self.locale, MessageKey.VIDEO_REMOVED)
		url = (video.url or video_url(video.id)) if video else self.channel_url
		thumbnail = await self._thumbnail(video.thumbnail_url) if video else None

		mention = await self._mention(EventType.VOD)
		duration = to_twitch_timestamp(offline_at - self.stream_started)
		content = get_text(self.locale, MessageKey.VOD_CONTENT, mention=mention, duration=duration)
		await self.notifier.send(Notification(
			EventType.VOD,
			content.strip(),
			build_vod_embed(title, url, lines, self.locale, clips=clips),
			thumbnail,
		))

	# HELPERS

	async def _resolve_video(self, segments: list[SessionElement]) -> tuple[Optional[Video], set[str]]:
		"""Newest segment first, return the first video that still resolves.

		The newest VOD may have been deleted while the stream was running. The
		ids that did not resolve are returned alongside.
		"""
		tried: set[str] = set()
		missing: set[str] = set()
		for segment in reversed(segments):
			vid = segment.video_id
			if not vid or vid in tried:
				continue
			tried.add(vid)
			video = await self._safely(self.api.get_video_by_id(vid), None, f"video lookup {vid}")
			if video is not None:
				return video, missing
			missing.add(vid)
		return None, missing

	async def _game(self, snapshot: StreamSnapshot) -> Game:
		fallback = Game(snapshot.game_id, snapshot.game_name or EMPTY_GAME.name)
		game = await self._safely(self.api.get_game(snapshot.game_id), fallback, "game lookup")
		# Segments are keyed by the observed id, whatever the lookup returned
		if game.game_id != snapshot.game_id:
			return fallback
		return game

	async def _video_id(self) -> Optional[str]:
		return await self._safely(
			self.api.get_latest_broadcast_id(self.channel_id, self.stream_started, login=self.login),
			None,
			"vod lookup",
		)

	async def _thumbnail(self, template: str) -> Optional[bytes]:
		return await self._safely(self.api.get_thumbnail(template), None, "thumbnail download")

	async def _clips(self) -> list[Video]:
		if self.top_clips <= 0 or not self.channel_id:
			return []
		return await self._safely(
			self.api.get_top_clips(self.channel_id, self.stream_started, self.top_clips), [], "clip lookup"
		)

	async def _mention(self, event: EventType) -> str:
		if self.roles is None:
			return ""
		return await self._safely(self.roles.mention_for(event), "", f"{event.value} role lookup")

	async def _set_activity(self, game: Game) -> None:
		if self.activity is not None:
			await self.activity.set_activity(self.login, game.name, self.channel_url)

	async def _clear_activity(self) -> None:
		if self.activity is not None:
			await self.activity.clear_activity(self.login)

	async def _safely(self, aw: Awaitable[T], fallback: T, what: str) -> T:
		"""Await an enrichment call, degrading to `fallback` on failure."""
		try:
			return await aw
		except FATAL_ERRORS:
			raise
		except Exception:
			log.warning("%s failed for %s, continuing without it", what, self.login, exc_info=True)
			return fallback


async def _none() -> Any:
	return None
