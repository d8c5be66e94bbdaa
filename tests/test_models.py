from datetime import datetime, timezone

from functionality.stream_watch.models import (
	EMPTY_GAME,
	EventType,
	Game,
	SessionElement,
	_to_epoch_seconds,
	to_twitch_timestamp,
)


def test_epoch_seconds_parses_utc_and_offsets():
	assert _to_epoch_seconds("2024-04-01T12:00:00Z") == int(datetime(2024, 4, 1, 12, tzinfo=timezone.utc).timestamp())
	expected = datetime(2024, 4, 3, 3, 30, tzinfo=timezone.utc)  # converted from +02:00
	assert _to_epoch_seconds("2024-04-03T05:30:00+02:00") == int(expected.timestamp())


def test_epoch_seconds_handles_invalid_values():
	assert _to_epoch_seconds("not-a-date") is None
	assert _to_epoch_seconds("") is None
	assert _to_epoch_seconds(None) is None


def test_twitch_timestamp_format():
	assert to_twitch_timestamp(0) == "00h00m00s"
	assert to_twitch_timestamp(3725) == "01h02m05s"
	assert to_twitch_timestamp(36 * 3600 + 59) == "36h00m59s"
	assert to_twitch_timestamp(-5) == "00h00m00s"


def test_empty_game_compares_equal_to_itself():
	assert EMPTY_GAME == Game("", "No Category")
	assert EMPTY_GAME.game_id == ""


def test_event_type_values():
	assert {e.value for e in EventType} == {"live", "update", "vod"}
	assert EventType("vod") is EventType.VOD


def test_session_element_defaults_to_empty_video():
	element = SessionElement(Game("1", "Chess"), 0)
	assert element.video_id == ""
