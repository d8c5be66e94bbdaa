from __future__ import annotations

"""Helix HTTP client with app-token handling.

Performs the client-credentials token exchange, attaches the bearer token to
every Helix call, re-authorizes once when a token expires and maps HTTP
statuses onto typed results: JSON on success, None for 404, exceptions for
everything else.
"""

import asyncio
import logging
import time
from typing import Any, Mapping, Optional, Sequence, Tuple, Union

import aiohttp

log = logging.getLogger(__name__)

TOKEN_URL = "https://id.twitch.tv/oauth2/token"
HELIX_URL = "https://api.twitch.tv/helix"
DEFAULT_TIMEOUT = aiohttp.ClientTimeout(total=10)
RATE_LIMIT_FALLBACK = 1.0
RATE_LIMIT_MAX_WAIT = 60.0

Params = Union[Mapping[str, Any], Sequence[Tuple[str, Any]], None]


class TwitchError(Exception):
	"""Base class for Twitch API failures."""


class HttpError(TwitchError):
	"""A non-successful HTTP status that is not handled as a typed result."""

	def __init__(self, route: str, status: int, reason: str | None = None) -> None:
		super().__init__(f"{route} > {status}: {reason or ''}".rstrip())
		self.route = route
		self.status = status
		self.reason = reason


class NotAuthorized(TwitchError):
	"""The credentials were rejected. Retrying will not help."""

	def __init__(self, status: int, body: str = "") -> None:
		super().__init__(f"Authorization failed. Code: {status} Body: {body}")
		self.status = status


class TwitchClient:
	"""Thin async wrapper around an aiohttp session for Helix requests."""

	def __init__(
		self,
		session: aiohttp.ClientSession,
		client_id: str,
		client_secret: str,
		*,
		access_token: str | None = None,
	) -> None:
		self.session = session
		self.client_id = client_id
		self.client_secret = client_secret
		self.access_token = access_token

	async def authorize(self) -> str:
		"""Exchange the client credentials for a fresh app access token."""
		payload = {
			"client_id": self.client_id,
			"client_secret": self.client_secret,
			"grant_type": "client_credentials",
		}
		async with self.session.post(TOKEN_URL, data=payload, timeout=DEFAULT_TIMEOUT) as resp:
			if 200 <= resp.status < 300:
				data = await resp.json()
				self.access_token = str(data["access_token"])
				log.debug("Obtained new Twitch app access token")
				return self.access_token
			body = await resp.text()
			if resp.status < 500:
				raise NotAuthorized(resp.status, body)
			raise HttpError(TOKEN_URL, resp.status, resp.reason)

	def _headers(self) -> dict[str, str]:
		return {
			"Client-ID": self.client_id,
			"Authorization": f"Bearer {self.access_token}",
		}

	async def get_json(self, url: str, params: Params = None) -> Optional[dict[str, Any]]:
		"""GET an authorized JSON resource; returns None when it does not exist."""
		if not self.access_token:
			await self.authorize()
		return await self._get(url, params, authorized=True, retried=False)

	async def get_bytes(self, url: str, params: Params = None) -> Optional[bytes]:
		"""GET raw bytes from a public URL (CDN thumbnails)."""
		return await self._get(url, params, authorized=False, retried=False)

	async def _get(self, url: str, params: Params, *, authorized: bool, retried: bool) -> Any:
		headers = self._headers() if authorized else {}
		log.debug("Making request to %s", url)
		async with self.session.get(url, params=params, headers=headers, timeout=DEFAULT_TIMEOUT) as resp:
			status = resp.status
			log.debug("Got response %s for url %s", status, url)
			if 200 <= status < 300:
				return await resp.json() if authorized else await resp.read()
			if status == 404:
				log.debug("Received 404 response for request to %s", url)
				return None
			if retried:
				# Replays never loop on a broken API
				if status == 401:
					raise NotAuthorized(status, await resp.text())
				raise HttpError(url, status, resp.reason)
			if status == 401 and authorized:
				log.warning("Authorization expired, refreshing token...")
				reset_after = None
			elif status == 429:
				reset_after = _rate_limit_delay(resp.headers)
				log.warning("Hit rate limit on %s, retrying in %.1fs", url, reset_after)
			else:
				raise HttpError(url, status, resp.reason)

		if reset_after is None:
			await self.authorize()
		else:
			await asyncio.sleep(reset_after)
		return await self._get(url, params, authorized=authorized, retried=True)


def _rate_limit_delay(headers: Mapping[str, str]) -> float:
	"""Seconds until the rate limit bucket resets, from the Ratelimit-Reset header."""
	raw = headers.get("Ratelimit-Reset") or headers.get("ratelimit-reset")
	if not raw:
		return RATE_LIMIT_FALLBACK
	try:
		reset_at = float(raw)
	except ValueError:
		return RATE_LIMIT_FALLBACK
	return min(max(reset_at - time.time(), 0.0), RATE_LIMIT_MAX_WAIT)
