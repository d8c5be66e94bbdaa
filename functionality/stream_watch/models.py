from __future__ import annotations

"""Data models used by the stream watch functionality.

Provides small dataclasses for poll snapshots, games, videos and the session
segments a watcher accumulates while a channel is live.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


def _to_epoch_seconds(dt_str: str | None) -> Optional[int]:
	"""Convert an ISO 8601 string to a UTC epoch seconds integer.

	Returns None if parsing fails or the input is empty.
	"""
	if not dt_str:
		return None
	s = dt_str.replace("Z", "+00:00")
	try:
		dt = datetime.fromisoformat(s)
		if dt.tzinfo is None:
			dt = dt.replace(tzinfo=timezone.utc)
		return int(dt.timestamp())
	except ValueError:
		return None


def to_twitch_timestamp(seconds: int) -> str:
	"""Render a duration in the HHhMMmSSs form Twitch accepts for ?t= links."""
	seconds = max(0, int(seconds))
	hours, rest = divmod(seconds, 3600)
	minutes, secs = divmod(rest, 60)
	return f"{hours:02d}h{minutes:02d}m{secs:02d}s"


class EventType(str, Enum):
	"""Notification event types."""
	LIVE = "live"
	UPDATE = "update"
	VOD = "vod"


@dataclass(frozen=True)
class Game:
	game_id: str
	name: str


# Streams without a category report game_id "", which must compare equal to itself.
EMPTY_GAME = Game("", "No Category")


@dataclass(frozen=True)
class StreamSnapshot:
	"""One poll-cycle observation of a live channel."""
	stream_id: str
	game_id: str
	game_name: str
	title: str
	type: str
	language: str
	thumbnail_url: str
	channel_id: str
	channel_login: str
	started_at: int  # epoch seconds

	@property
	def channel_url(self) -> str:
		return f"https://www.twitch.tv/{self.channel_login}"


@dataclass(frozen=True)
class Video:
	"""An archived broadcast or clip."""
	id: str
	url: str
	title: str
	thumbnail_url: str
	views: int = 0
	type: str = "archive"
	created_at: Optional[int] = None


@dataclass(frozen=True)
class SessionElement:
	"""A single-game segment of a live session.

	timestamp is the offset in seconds since stream start at which the segment
	began; video_id may be empty until Twitch indexes the VOD.
	"""
	game: Game
	timestamp: int
	video_id: str = ""
