from __future__ import annotations

import logging

import hikari
import lightbulb
from lightbulb.commands import options as opt

from .common import SharedContext

log = logging.getLogger(__name__)


async def toggle_rank(rest: hikari.api.RESTClient, guild_id: int, member: hikari.Member, role_name: str, shared: SharedContext) -> str:
    """Add or remove a notification role on a member and return the reply text."""
    mention = member.mention
    wanted = role_name.strip().casefold()
    # Members may only toggle the notification roles, never arbitrary ones
    if wanted not in shared.role_names:
        return f"{mention}, That role does not exist!"

    role = next((r for r in await rest.fetch_roles(guild_id) if r.name.casefold() == wanted), None)
    if role is None:
        return f"{mention} I don't know that role!"

    if role.id in member.role_ids:
        log.debug("Removing %s from %s", role.name, member.username)
        await rest.remove_role_from_member(guild_id, member.id, role.id)
        return f"{mention}, you left **{role.name}**."
    log.debug("Adding %s to %s", role.name, member.username)
    await rest.add_role_to_member(guild_id, member.id, role.id)
    return f"{mention}, you joined **{role.name}**."


def register(client: lightbulb.Client, shared: SharedContext) -> str:
    @client.register
    class Rank(
        lightbulb.SlashCommand,
        name="rank",
        description="Join or leave a stream notification role",
    ):
        role: str = opt.string("role", "Name of the notification role")

        @lightbulb.invoke
        async def invoke(self, ctx: lightbulb.Context) -> None:
            if not ctx.guild_id or ctx.member is None:
                await ctx.respond("This command must be used in a server.", ephemeral=True)
                return
            try:
                reply = await toggle_rank(ctx.client.app.rest, int(ctx.guild_id), ctx.member, self.role, shared)
            except hikari.HikariError:
                log.exception("Rank command failed for %s", ctx.user.id)
                await ctx.respond("Something went wrong, try again later.", ephemeral=True)
                return
            await ctx.respond(reply, ephemeral=reply.endswith("does not exist!"))

    return "rank"
