from types import SimpleNamespace

import pytest

from functionality.stream_watch.models import EventType
from functionality.stream_watch.roles import RoleResolver


class StubRest:
	def __init__(self, roles_by_guild):
		self.roles_by_guild = roles_by_guild
		self.role_fetches: list[int] = []

	async def fetch_my_guilds(self):
		return [SimpleNamespace(id=gid) for gid in self.roles_by_guild]

	async def fetch_roles(self, guild_id):
		self.role_fetches.append(guild_id)
		return self.roles_by_guild.get(guild_id, [])


def _app(roles_by_guild):
	return SimpleNamespace(rest=StubRest(roles_by_guild))


@pytest.mark.asyncio
async def test_mention_resolves_case_insensitively_and_caches():
	app = _app({1: [SimpleNamespace(name="Live Alerts", id=555)]})
	resolver = RoleResolver(app, {EventType.LIVE: "live alerts"})
	assert await resolver.mention_for(EventType.LIVE) == "<@&555>"
	assert await resolver.mention_for(EventType.LIVE) == "<@&555>"
	assert app.rest.role_fetches == [1]


@pytest.mark.asyncio
async def test_empty_role_name_disables_mention():
	app = _app({1: [SimpleNamespace(name="vod", id=1)]})
	resolver = RoleResolver(app, {EventType.VOD: ""})
	assert await resolver.mention_for(EventType.VOD) == ""
	assert await resolver.mention_for(EventType.UPDATE) == ""
	assert app.rest.role_fetches == []


@pytest.mark.asyncio
async def test_unknown_role_gives_no_mention():
	resolver = RoleResolver(_app({1: []}), {EventType.UPDATE: "updates"})
	assert await resolver.mention_for(EventType.UPDATE) == ""


@pytest.mark.asyncio
async def test_guild_filter_limits_lookup():
	app = _app({
		1: [SimpleNamespace(name="live", id=10)],
		2: [SimpleNamespace(name="live", id=20)],
	})
	resolver = RoleResolver(app, {EventType.LIVE: "live"}, guild_id=2)
	assert await resolver.mention_for(EventType.LIVE) == "<@&20>"
	assert app.rest.role_fetches == [2]
