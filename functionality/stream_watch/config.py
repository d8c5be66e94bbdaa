from __future__ import annotations

"""Environment-based configuration for StreamScout.

Values are read from the process environment (populated from .env by the
entrypoint). Missing required values raise RuntimeError.
"""

import os
import re
from dataclasses import dataclass, field
from typing import Mapping, Optional

from .models import EventType
from .notifier import WebhookTarget

WEBHOOK_URL = re.compile(
	r"^https?://(?:(?:ptb|canary)\.)?discord(?:app)?\.com/api(?:/v\d+)?/webhooks/(?P<id>\d+)/(?P<token>[\w-]+)/?$"
)


def parse_webhook_url(url: str) -> WebhookTarget:
	"""Split a Discord webhook URL into its id and token."""
	m = WEBHOOK_URL.match(url.strip())
	if not m:
		raise RuntimeError(f"Invalid Discord webhook URL: {url!r}")
	return WebhookTarget(webhook_id=int(m.group("id")), token=m.group("token"))


@dataclass(frozen=True)
class WatchConfig:
	discord_token: str
	notifications: WebhookTarget
	twitch_client_id: str
	twitch_client_secret: str
	logins: frozenset[str]
	enabled_events: frozenset[EventType] = frozenset(EventType)
	role_names: Mapping[EventType, str] = field(default_factory=dict)
	guild_id: int = 0
	offline_grace_seconds: int = 120
	top_clips: int = 0
	poll_interval_seconds: int = 10
	message_logs: Optional[WebhookTarget] = None
	log_level: str = "INFO"
	dev_guild_ids: tuple[int, ...] = ()


def _required(env: Mapping[str, str], name: str) -> str:
	value = (env.get(name) or "").strip()
	if not value:
		raise RuntimeError(f"{name} is not set in the environment or .env file")
	return value


def _int(env: Mapping[str, str], name: str, default: int) -> int:
	raw = (env.get(name) or "").strip()
	if not raw:
		return default
	try:
		return int(raw)
	except ValueError:
		raise RuntimeError(f"Invalid integer for {name}: {raw!r}")


def _split(raw: str) -> list[str]:
	return [part.strip() for part in raw.split(",") if part.strip()]


def load_config(env: Optional[Mapping[str, str]] = None) -> WatchConfig:
	"""Build a WatchConfig from environment variables."""
	env = os.environ if env is None else env

	logins = frozenset(l.lower() for l in _split(_required(env, "TWITCH_USER_LOGIN")))
	if not logins:
		raise RuntimeError("TWITCH_USER_LOGIN does not name any channel")

	raw_events = env.get("ENABLED_EVENTS")
	events: set[EventType] = set()
	for name in _split(raw_events) if raw_events is not None else [e.value for e in EventType]:
		try:
			events.add(EventType(name.lower()))
		except ValueError:
			raise RuntimeError(f"Unknown event type in ENABLED_EVENTS: {name!r}")

	roles = {event: (env.get(f"ROLE_{event.name}") or "").strip() for event in EventType}

	logs_url = (env.get("MESSAGE_LOGS_WEBHOOK") or "").strip()
	dev_guilds: list[int] = []
	for part in _split(env.get("GUILD_IDS") or ""):
		try:
			dev_guilds.append(int(part))
		except ValueError:
			raise RuntimeError(f"Invalid guild id in GUILD_IDS: {part!r}")

	return WatchConfig(
		discord_token=_required(env, "DISCORD_TOKEN"),
		notifications=parse_webhook_url(_required(env, "STREAM_NOTIFICATIONS_WEBHOOK")),
		twitch_client_id=_required(env, "TWITCH_CLIENT_ID"),
		twitch_client_secret=_required(env, "TWITCH_CLIENT_SECRET"),
		logins=logins,
		enabled_events=frozenset(events),
		role_names=roles,
		guild_id=_int(env, "DISCORD_GUILD_ID", 0),
		offline_grace_seconds=max(0, _int(env, "OFFLINE_GRACE_SECONDS", 120)),
		top_clips=max(0, min(_int(env, "TOP_CLIPS", 0), 5)),
		poll_interval_seconds=max(1, _int(env, "POLL_INTERVAL_SECONDS", 10)),
		message_logs=parse_webhook_url(logs_url) if logs_url else None,
		log_level=(env.get("LOG_LEVEL") or "INFO").strip().upper(),
		dev_guild_ids=tuple(dev_guilds),
	)
