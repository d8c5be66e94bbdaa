from __future__ import annotations

"""Discord embed helpers for stream notifications."""

from typing import Iterable, Optional, Sequence

import hikari

from .i18n import MessageKey, get_text
from .models import Game, SessionElement, StreamSnapshot, Video, to_twitch_timestamp

# Twitch brand color
COLOR = 0x6441A4
# Discord rejects embed field values longer than this
FIELD_LIMIT = 1024
# Discord caps on a whole embed
EMBED_LIMIT = 6000
FIELD_COUNT_LIMIT = 25
TRUNCATED = "…"
CLIP_TITLE_LIMIT = 25
THUMBNAIL_NAME = "thumbnail.jpg"


def video_url(video_id: str) -> str:
	return f"https://www.twitch.tv/videos/{video_id}"


def build_base_embed(title: str, url: str) -> hikari.Embed:
	"""Channel or video link as the title, the stream/video title as author."""
	e = hikari.Embed(title=url, url=url, color=COLOR)
	if title:
		e.set_author(name=title[:256])
	return e


def build_stream_embed(snapshot: StreamSnapshot, game: Game, locale: str) -> hikari.Embed:
	"""Embed used by the live and update notifications."""
	e = build_base_embed(snapshot.title, snapshot.channel_url)
	e.add_field(name=get_text(locale, MessageKey.PLAYING), value=game.name or "-", inline=True)
	e.add_field(
		name=get_text(locale, MessageKey.STARTED_AT),
		value=f"<t:{snapshot.started_at}:F>",
		inline=True,
	)
	return e


def build_update_embed(
	snapshot: StreamSnapshot,
	game: Game,
	locale: str,
	*,
	video_id: str,
	offset: int,
) -> hikari.Embed:
	e = build_stream_embed(snapshot, game, locale)
	if video_id:
		ts = to_twitch_timestamp(offset)
		link = f"[{ts}]({video_url(video_id)}?t={ts})"
		e.description = get_text(locale, MessageKey.WATCH_AT, link=link)
	return e


def timestamp_line(element: SessionElement, fallback_video_id: str = "") -> str:
	"""One line of the VOD index: a ?t= link followed by the game name."""
	ts = to_twitch_timestamp(element.timestamp)
	vid = element.video_id or fallback_video_id
	if not vid:
		return f"{ts} {element.game.name}"
	return f"[{ts}]({video_url(vid)}?t={ts}) {element.game.name}"


def split_lines(lines: Iterable[str], limit: int = FIELD_LIMIT) -> list[str]:
	"""Join lines with newlines into chunks no longer than `limit`.

	Chunks only break between lines and keep the input order. A single line
	longer than the limit is cut down to fit.
	"""
	chunks: list[str] = []
	current = ""
	for line in lines:
		if len(line) > limit:
			line = line[: limit - 1] + "…"
		candidate = f"{current}\n{line}" if current else line
		if len(candidate) > limit:
			chunks.append(current)
			current = line
		else:
			current = candidate
	if current:
		chunks.append(current)
	return chunks


def _shorten(text: str, limit: int = CLIP_TITLE_LIMIT) -> str:
	text = text.strip()
	return text if len(text) <= limit else text[:limit] + "…"


def render_clips(clips: Sequence[Video], locale: str) -> str:
	lines = []
	for rank, clip in enumerate(clips, start=1):
		views = get_text(locale, MessageKey.CLIP_VIEWS, views=clip.views)
		lines.append(f"{rank}. [{_shorten(clip.title)}]({clip.url}) ({views})")
	return "\n".join(lines)


def build_vod_embed(
	title: str,
	url: str,
	index_lines: Sequence[str],
	locale: str,
	*,
	clips: Optional[Sequence[Video]] = None,
) -> hikari.Embed:
	"""Embed for the vod notification: timestamp index and optional top clips.

	Index chunks that would push the embed past Discord's field count or total
	size are dropped and replaced by a single "…" field.
	"""
	e = build_base_embed(title, url)
	clips_name = get_text(locale, MessageKey.TOP_CLIPS)
	clips_value = split_lines(render_clips(clips, locale).splitlines())[0] if clips else ""

	budget = EMBED_LIMIT - len(url) - len(title)
	slots = FIELD_COUNT_LIMIT
	if clips_value:
		budget -= len(clips_name) + len(clips_value)
		slots -= 1

	chunks = split_lines(index_lines)
	fields: list[tuple[str, str]] = []
	for chunk in chunks:
		name = get_text(locale, MessageKey.TIMESTAMPS) if not fields else "\u200b"
		if len(fields) >= slots or len(name) + len(chunk) > budget:
			break
		fields.append((name, chunk))
		budget -= len(name) + len(chunk)
	if len(fields) < len(chunks):
		# Make room for the trailer
		while fields and (len(fields) >= slots or budget < len(TRUNCATED) + 1):
			name, chunk = fields.pop()
			budget += len(name) + len(chunk)
		fields.append((get_text(locale, MessageKey.TIMESTAMPS) if not fields else "\u200b", TRUNCATED))

	for name, value in fields:
		e.add_field(name=name, value=value, inline=False)
	if clips_value:
		e.add_field(name=clips_name, value=clips_value, inline=False)
	return e
