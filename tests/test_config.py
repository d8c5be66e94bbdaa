import pytest

from functionality.stream_watch.config import load_config, parse_webhook_url
from functionality.stream_watch.models import EventType

HOOK = "https://discord.com/api/webhooks/123456/abc-DEF_ghi"


def _env(**overrides):
	env = {
		"DISCORD_TOKEN": "token",
		"STREAM_NOTIFICATIONS_WEBHOOK": HOOK,
		"TWITCH_CLIENT_ID": "cid",
		"TWITCH_CLIENT_SECRET": "secret",
		"TWITCH_USER_LOGIN": "Alice, bob,alice",
	}
	env.update(overrides)
	return env


def test_defaults():
	cfg = load_config(_env())
	assert cfg.logins == frozenset({"alice", "bob"})
	assert cfg.enabled_events == frozenset(EventType)
	assert cfg.offline_grace_seconds == 120
	assert cfg.top_clips == 0
	assert cfg.poll_interval_seconds == 10
	assert cfg.notifications.webhook_id == 123456
	assert cfg.notifications.token == "abc-DEF_ghi"
	assert cfg.message_logs is None
	assert cfg.role_names == {EventType.LIVE: "", EventType.UPDATE: "", EventType.VOD: ""}


def test_overrides_and_clamping():
	cfg = load_config(_env(
		ENABLED_EVENTS="live, VOD",
		ROLE_LIVE="Live Pings",
		TOP_CLIPS="9",
		OFFLINE_GRACE_SECONDS="30",
		POLL_INTERVAL_SECONDS="0",
		MESSAGE_LOGS_WEBHOOK="https://discordapp.com/api/v10/webhooks/9/tok",
		GUILD_IDS="1, 2",
	))
	assert cfg.enabled_events == frozenset({EventType.LIVE, EventType.VOD})
	assert cfg.role_names[EventType.LIVE] == "Live Pings"
	assert cfg.top_clips == 5
	assert cfg.offline_grace_seconds == 30
	assert cfg.poll_interval_seconds == 1
	assert cfg.message_logs is not None and cfg.message_logs.webhook_id == 9
	assert cfg.dev_guild_ids == (1, 2)


def test_empty_enabled_events_disables_all():
	assert load_config(_env(ENABLED_EVENTS="")).enabled_events == frozenset()


@pytest.mark.parametrize("missing", ["DISCORD_TOKEN", "TWITCH_CLIENT_ID", "TWITCH_USER_LOGIN", "STREAM_NOTIFICATIONS_WEBHOOK"])
def test_missing_required_values(missing):
	env = _env()
	del env[missing]
	with pytest.raises(RuntimeError, match=missing):
		load_config(env)


def test_invalid_values_are_rejected():
	with pytest.raises(RuntimeError):
		load_config(_env(ENABLED_EVENTS="live,raid"))
	with pytest.raises(RuntimeError):
		load_config(_env(TOP_CLIPS="many"))
	with pytest.raises(RuntimeError):
		parse_webhook_url("https://example.com/hook")
