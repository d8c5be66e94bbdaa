from __future__ import annotations

"""Typed Helix operations used by the stream watchers.

TwitchApi converts raw Helix payloads into the condensed models from
`models.py`. Every lookup returns an empty value (None or []) when Twitch has
nothing to report; transport and HTTP failures are raised so callers can tell
"not found" apart from "could not ask".
"""

import logging
import re
import time
from typing import Any, Iterable, Optional

from .cache import BoundedCache
from .models import EMPTY_GAME, Game, StreamSnapshot, Video, _to_epoch_seconds
from .twitch_client import HELIX_URL, TwitchClient

log = logging.getLogger(__name__)

GAME_CACHE_SIZE = 10
MAX_CLIPS = 5
# Stream thumbnails use {width}, video thumbnails use %{width}
_WIDTH = re.compile(r"%?\{width\}")
_HEIGHT = re.compile(r"%?\{height\}")


def _data(payload: Optional[dict[str, Any]]) -> list[dict[str, Any]]:
	if not isinstance(payload, dict):
		return []
	items = payload.get("data") or []
	return [i for i in items if isinstance(i, dict)]


def _snapshot(item: dict[str, Any]) -> StreamSnapshot:
	return StreamSnapshot(
		stream_id=str(item.get("id", "")),
		game_id=str(item.get("game_id") or ""),
		game_name=str(item.get("game_name") or ""),
		title=str(item.get("title", "")),
		type=str(item.get("type", "")),
		language=str(item.get("language") or "en"),
		thumbnail_url=str(item.get("thumbnail_url", "")),
		channel_id=str(item.get("user_id", "")),
		channel_login=str(item.get("user_login") or item.get("user_name") or "").lower(),
		started_at=_to_epoch_seconds(item.get("started_at")) or int(time.time()),
	)


def _video(item: dict[str, Any]) -> Video:
	return Video(
		id=str(item.get("id", "")),
		url=str(item.get("url", "")),
		title=str(item.get("title", "")),
		thumbnail_url=str(item.get("thumbnail_url", "")),
		views=int(item.get("view_count") or 0),
		type=str(item.get("type") or "archive"),
		created_at=_to_epoch_seconds(item.get("created_at")),
	)


def thumbnail_url(template: str, width: int = 1920, height: int = 1080) -> str:
	"""Fill the size placeholders of a thumbnail template and bust CDN caches."""
	url = _HEIGHT.sub(str(height), _WIDTH.sub(str(width), template))
	return f"{url}?v={int(time.time() * 1000)}"


class TwitchApi:
	"""Facade over the Helix endpoints the watchers need."""

	def __init__(self, client: TwitchClient, *, game_cache_size: int = GAME_CACHE_SIZE) -> None:
		self.client = client
		self.games: BoundedCache[str, Game] = BoundedCache(game_cache_size)
		self._warned_missing_vod: set[str] = set()

	async def get_snapshots(self, logins: Iterable[str]) -> list[StreamSnapshot]:
		"""Return snapshots for the given logins that are currently live.

		All logins go into one request. An empty list means everyone is offline.
		"""
		names = sorted({l.lower() for l in logins if l})
		if not names:
			return []
		params = [("user_login", name) for name in names]
		params.append(("first", str(min(len(names), 100))))
		payload = await self.client.get_json(f"{HELIX_URL}/streams", params)
		return [_snapshot(item) for item in _data(payload)]

	async def get_game(self, game_id: str) -> Game:
		"""Cache-then-fetch lookup; the empty id maps to EMPTY_GAME without a request.

		An unknown id keeps its id with the "No Category" name, so callers
		comparing ids never see it change.
		"""
		if not game_id:
			return EMPTY_GAME
		cached = self.games.get(game_id)
		if cached is not None:
			return cached
		items = _data(await self.client.get_json(f"{HELIX_URL}/games", {"id": game_id}))
		if not items:
			log.debug("Unknown game id %s", game_id)
			return Game(game_id, EMPTY_GAME.name)
		game = Game(game_id, str(items[0].get("name") or EMPTY_GAME.name))
		return self.games.put(game_id, game)

	async def get_thumbnail(self, template: str, width: int = 1920, height: int = 1080) -> Optional[bytes]:
		if not template:
			return None
		return await self.client.get_bytes(thumbnail_url(template, width, height))

	async def get_latest_broadcast(self, channel_id: str, since: int = 0, *, login: str = "") -> Optional[Video]:
		"""Return the newest archive of the channel created at or after `since`.

		Only the 5 most recent videos are inspected. Twitch may not have
		indexed the archive yet right after a stream starts.
		"""
		if not channel_id:
			return None
		params = {"user_id": channel_id, "type": "archive", "first": "5"}
		for item in _data(await self.client.get_json(f"{HELIX_URL}/videos", params)):
			video = _video(item)
			if video.type == "archive" and (video.created_at or 0) >= since:
				return video
		key = login or channel_id
		if key not in self._warned_missing_vod:
			self._warned_missing_vod.add(key)
			log.warning("Could not find vod for current stream by %s. Did you enable archives?", key)
		return None

	async def get_latest_broadcast_id(self, channel_id: str, since: int = 0, *, login: str = "") -> Optional[str]:
		video = await self.get_latest_broadcast(channel_id, since, login=login)
		return video.id if video else None

	async def get_video_by_id(self, video_id: str) -> Optional[Video]:
		if not video_id:
			return None
		items = _data(await self.client.get_json(f"{HELIX_URL}/videos", {"id": video_id}))
		return _video(items[0]) if items else None

	async def get_top_clips(self, channel_id: str, since: int, limit: int = MAX_CLIPS) -> list[Video]:
		"""Most viewed clips of the channel created at or after `since` (max 5)."""
		limit = max(1, min(int(limit), MAX_CLIPS))
		if not channel_id:
			return []
		started = time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(since))
		params = {"broadcaster_id": channel_id, "first": str(limit), "started_at": started}
		items = _data(await self.client.get_json(f"{HELIX_URL}/clips", params))
		return [_video({**item, "type": "clip"}) for item in items[:limit]]
