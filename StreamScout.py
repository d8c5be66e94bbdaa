"""StreamScout: Discord bot entrypoint.

Sets up the Hikari + Lightbulb client, registers commands, and starts the
background stream monitor. Configuration is provided via environment
variables loaded from .env when present.
"""

import os
import sys
import asyncio
import logging
from typing import Optional

import aiohttp
import hikari
import lightbulb
from dotenv import load_dotenv

# Optional: use uvloop on UNIX-like systems for better event loop performance
if os.name != "nt":
	try:
		import uvloop  # type: ignore

		asyncio.set_event_loop_policy(uvloop.EventLoopPolicy())
	except ImportError:
		# If uvloop isn't available, continue with default asyncio loop
		pass

from functionality.stream_watch import (
	ActivityPublisher,
	RoleResolver,
	StreamMonitor,
	StreamNotifier,
	StreamWatcher,
	TwitchApi,
	TwitchClient,
	load_config,
)
from functionality.stream_watch.commands import register_commands
from functionality.stream_watch.log_forwarder import setup_logging
from functionality.stream_watch.message_log import MessageLogger

# Load .env file and read configuration
load_dotenv()
config = load_config()
log_handler = setup_logging(config.log_level, config.message_logs)
log = logging.getLogger("StreamScout")

# Create the Hikari gateway bot
intents = hikari.Intents.ALL_UNPRIVILEGED
if config.message_logs:
	# Edit and delete logs need the message text
	intents |= hikari.Intents.MESSAGE_CONTENT
bot = hikari.GatewayBot(
	token=config.discord_token,
	intents=intents,
)

# Guild-scoped commands appear almost instantly; global commands can take up to an hour.
client = lightbulb.client_from_app(bot, default_enabled_guilds=config.dev_guild_ids)

bot.subscribe(hikari.StartedEvent, client.start)
bot.subscribe(hikari.StoppingEvent, client.stop)

register_commands(client, config)

message_logger: Optional[MessageLogger] = None
if config.message_logs:
	message_logger = MessageLogger(config.message_logs, guild_id=config.guild_id)
	message_logger.subscribe(bot)

_session: Optional[aiohttp.ClientSession] = None
_monitor: Optional[StreamMonitor] = None
_notifier: Optional[StreamNotifier] = None
_activity: Optional[ActivityPublisher] = None
_supervisor: Optional[asyncio.Task] = None
_fatal = False


async def _supervise(monitor: StreamMonitor) -> None:
	"""Shut the bot down when the monitor dies from a fatal error."""
	global _fatal
	try:
		await monitor.wait()
	except asyncio.CancelledError:
		raise
	except Exception:
		_fatal = True
		log.critical("Twitch service terminated, shutting down")
		await bot.close()


@bot.listen(hikari.StartedEvent)
async def _note_started(_: hikari.StartedEvent) -> None:
	"""Start the background monitor after the app has started."""
	global _session, _monitor, _notifier, _activity, _supervisor
	_session = aiohttp.ClientSession()
	api = TwitchApi(TwitchClient(_session, config.twitch_client_id, config.twitch_client_secret))
	_notifier = StreamNotifier(config.notifications, config.enabled_events)
	await _notifier.start()
	_activity = ActivityPublisher(bot)
	_activity.start()
	roles = RoleResolver(bot, config.role_names, guild_id=config.guild_id)
	watchers = [
		StreamWatcher(
			login,
			api,
			_notifier,
			roles=roles,
			activity=_activity,
			offline_delay=config.offline_grace_seconds,
			top_clips=config.top_clips,
		)
		for login in sorted(config.logins)
	]
	_monitor = StreamMonitor(api, watchers, interval_seconds=config.poll_interval_seconds)
	_monitor.start()
	_supervisor = asyncio.create_task(_supervise(_monitor), name="stream-monitor-supervisor")
	log.info("StreamScout bot ready. Monitoring %d channel(s)...", len(watchers))


@bot.listen(hikari.StoppingEvent)
async def _note_stopping(_: hikari.StoppingEvent) -> None:
	"""Stop the background monitor when the app is shutting down."""
	global _session, _supervisor
	# A fatal shutdown is driven by the supervisor itself
	if _supervisor and not _supervisor.done() and not _fatal:
		_supervisor.cancel()
	if _monitor:
		await _monitor.stop()
	if _activity:
		await _activity.stop()
	if _notifier:
		await _notifier.close()
	if _session:
		await _session.close()
		_session = None
	if message_logger:
		await message_logger.close()
	if log_handler:
		await log_handler.aclose()


# Run the bot
if __name__ == "__main__":
	bot.run()
	if _fatal:
		sys.exit(1)
