import hikari

from functionality.stream_watch.embeds import (
	COLOR,
	EMBED_LIMIT,
	FIELD_COUNT_LIMIT,
	FIELD_LIMIT,
	build_stream_embed,
	build_update_embed,
	build_vod_embed,
	render_clips,
	split_lines,
	timestamp_line,
)
from functionality.stream_watch.models import Game, SessionElement, StreamSnapshot, Video


def _snapshot() -> StreamSnapshot:
	return StreamSnapshot(
		stream_id="s1",
		game_id="1",
		game_name="Chess",
		title="Late night chess",
		type="live",
		language="en",
		thumbnail_url="",
		channel_id="42",
		channel_login="alice",
		started_at=1711972800,
	)


def test_stream_embed_layout():
	e = build_stream_embed(_snapshot(), Game("1", "Chess"), "en")
	assert isinstance(e, hikari.Embed)
	assert e.url == "https://www.twitch.tv/alice"
	assert e.title == "https://www.twitch.tv/alice"
	assert e.color == COLOR
	assert e.author is not None and e.author.name == "Late night chess"
	fields = [(f.name, f.value) for f in e.fields]
	assert fields == [("Playing", "Chess"), ("Started At", "<t:1711972800:F>")]


def test_update_embed_links_segment_start():
	e = build_update_embed(_snapshot(), Game("2", "Go"), "en", video_id="v1", offset=3725)
	assert e.description == "Start watching at [01h02m05s](https://www.twitch.tv/videos/v1?t=01h02m05s)"


def test_update_embed_without_video_has_no_description():
	e = build_update_embed(_snapshot(), Game("2", "Go"), "en", video_id="", offset=10)
	assert not e.description


def test_timestamp_line_uses_fallback_video():
	element = SessionElement(Game("1", "Chess"), 90, "")
	assert timestamp_line(element, "v9") == "[00h01m30s](https://www.twitch.tv/videos/v9?t=00h01m30s) Chess"
	assert timestamp_line(element) == "00h01m30s Chess"


def test_split_lines_breaks_at_line_boundaries_in_order():
	lines = [f"[{i:02d}h00m00s](https://www.twitch.tv/videos/123456789?t={i:02d}h00m00s) Game number {i}" for i in range(40)]
	chunks = split_lines(lines)
	assert len(chunks) >= 2
	assert all(len(c) <= FIELD_LIMIT for c in chunks)
	assert "\n".join(chunks).split("\n") == lines


def test_split_lines_small_input_is_single_chunk():
	assert split_lines(["a", "b"]) == ["a\nb"]
	assert split_lines([]) == []


def test_split_lines_cuts_oversized_line():
	chunks = split_lines(["x" * 2000], limit=100)
	assert len(chunks) == 1 and len(chunks[0]) == 100


def test_render_clips_truncates_titles():
	clips = [
		Video(id="c1", url="https://clips/1", title="A very long clip title that goes on", thumbnail_url="", views=120),
		Video(id="c2", url="https://clips/2", title="short", thumbnail_url="", views=3),
	]
	text = render_clips(clips, "en")
	assert text.splitlines() == [
		"1. [A very long clip title th…](https://clips/1) (120 views)",
		"2. [short](https://clips/2) (3 views)",
	]


def test_vod_embed_splits_index_and_adds_clips():
	lines = ["y" * 600, "z" * 600]
	clips = [Video(id="c1", url="https://clips/1", title="gg", thumbnail_url="", views=1)]
	e = build_vod_embed("My VOD", "https://www.twitch.tv/videos/1", lines, "en", clips=clips)
	names = [f.name for f in e.fields]
	assert names == ["Time Stamps", "\u200b", "Top Clips"]
	assert e.author.name == "My VOD"


def _embed_size(e: hikari.Embed) -> int:
	size = len(e.title or "") + len(e.description or "") + len(e.author.name if e.author else "")
	return size + sum(len(f.name) + len(f.value) for f in e.fields)


def test_vod_embed_long_index_stays_within_embed_limits():
	lines = [f"[{i:02d}h00m00s](https://www.twitch.tv/videos/1?t={i:02d}h00m00s) Some Game {i}" for i in range(400)]
	clips = [Video(id="c1", url="https://clips/1", title="gg", thumbnail_url="", views=1)]
	e = build_vod_embed("My VOD", "https://www.twitch.tv/videos/1", lines, "en", clips=clips)
	assert len(e.fields) <= FIELD_COUNT_LIMIT
	assert _embed_size(e) <= EMBED_LIMIT
	assert e.fields[0].name == "Time Stamps"
	assert e.fields[-2].value == "…"
	assert e.fields[-1].name == "Top Clips"


def test_vod_embed_cut_index_ends_with_marker():
	# One line per field; only nine of them fit the total size
	lines = ["x" * 600] * 20
	e = build_vod_embed("t", "u", lines, "en")
	assert len(e.fields) == 10
	assert all(f.value == "x" * 600 for f in e.fields[:-1])
	assert _embed_size(e) <= EMBED_LIMIT
	assert e.fields[-1].value == "…"
