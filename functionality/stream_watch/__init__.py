from .models import EMPTY_GAME, EventType, Game, SessionElement, StreamSnapshot, Video
from .cache import BoundedCache
from .twitch_client import HttpError, NotAuthorized, TwitchClient, TwitchError
from .twitch_api import TwitchApi
from .notifier import Notification, StreamNotifier, WebhookTarget
from .roles import RoleResolver
from .presence import ActivityPublisher
from .watcher import StreamWatcher
from .monitor import StreamMonitor
from .message_log import MessageLogger
from .config import WatchConfig, load_config

__all__ = [
	"EMPTY_GAME",
	"EventType",
	"Game",
	"SessionElement",
	"StreamSnapshot",
	"Video",
	"BoundedCache",
	"HttpError",
	"NotAuthorized",
	"TwitchClient",
	"TwitchError",
	"TwitchApi",
	"Notification",
	"StreamNotifier",
	"WebhookTarget",
	"RoleResolver",
	"ActivityPublisher",
	"StreamWatcher",
	"StreamMonitor",
	"MessageLogger",
	"WatchConfig",
	"load_config",
]
