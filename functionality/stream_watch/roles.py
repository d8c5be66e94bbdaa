from __future__ import annotations

"""Resolves notification event types to mentionable Discord roles."""

import logging
from typing import Mapping, Optional

import hikari

from .cache import BoundedCache
from .models import EventType

log = logging.getLogger(__name__)


class RoleResolver:
	"""Maps an event type to a role mention via its configured role name.

	Role ids are looked up once by name (case-insensitive) across the bot's
	guilds, optionally restricted to a single guild, and cached afterwards.
	"""

	def __init__(
		self,
		app: hikari.RESTAware,
		role_names: Mapping[EventType, str],
		*,
		guild_id: int = 0,
	) -> None:
		self.app = app
		self.role_names = dict(role_names)
		self.guild_id = int(guild_id)
		self._role_ids: BoundedCache[EventType, int] = BoundedCache(max(len(EventType), 1))

	async def _guild_ids(self) -> list[int]:
		if self.guild_id:
			return [self.guild_id]
		guilds = await self.app.rest.fetch_my_guilds()
		return [int(g.id) for g in guilds]

	async def find_role(self, name: str) -> Optional[hikari.Role]:
		target = name.casefold()
		for gid in await self._guild_ids():
			for role in await self.app.rest.fetch_roles(gid):
				if role.name.casefold() == target:
					return role
		return None

	async def mention_for(self, event: EventType) -> str:
		"""Return "<@&id>" for the event's role, or "" if none is configured or found."""
		name = (self.role_names.get(event) or "").strip()
		if not name:
			return ""
		role_id = self._role_ids.get(event)
		if role_id is None:
			try:
				role = await self.find_role(name)
			except hikari.HikariError:
				log.warning("Could not look up role %r for %s notifications", name, event.value, exc_info=True)
				return ""
			if role is None:
				log.warning("No role named %r found for %s notifications", name, event.value)
				return ""
			role_id = self._role_ids.put(event, int(role.id))
		return f"<@&{role_id}>"
