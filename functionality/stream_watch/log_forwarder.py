from __future__ import annotations

"""Logging setup and forwarding of warnings/errors to a Discord webhook."""

import asyncio
import logging
import sys
import traceback
from datetime import datetime, timezone
from typing import Optional

import hikari

from .notifier import WebhookTarget

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
TRACE_LIMIT = 1500

_ESC = "\u001b["
_RESET = f"{_ESC}0m"
_LEVEL_COLORS = {
	logging.CRITICAL: f"{_ESC}1;31m",
	logging.ERROR: f"{_ESC}1;31m",
	logging.WARNING: f"{_ESC}35m",
	logging.INFO: f"{_ESC}36m",
	logging.DEBUG: f"{_ESC}34m",
}


def format_record(record: logging.LogRecord) -> str:
	"""Render a record as an ansi code block, cutting long tracebacks short."""
	color = _LEVEL_COLORS.get(record.levelno, "")
	parts = ["```ansi\n[", f"{color}{record.levelname}{_RESET}" if color else record.levelname, "] ", record.getMessage()]
	if record.exc_info and record.exc_info[1] is not None:
		exc_type, exc, tb = record.exc_info
		parts.append(f"\n{_ESC}31m{exc_type.__name__ if exc_type else 'Exception'}: {exc}")
		size = sum(len(p) for p in parts)
		for frame in traceback.extract_tb(tb):
			line = f"File \"{frame.filename}\", line {frame.lineno}, in {frame.name}"
			if size + len(line) >= TRACE_LIMIT:
				parts.append("\n\t...")
				break
			parts.append(f"\n\t{line}")
			size += len(line) + 2
		parts.append(_RESET)
	parts.append("\n```")
	return "".join(parts)


class WebhookLogHandler(logging.Handler):
	"""Posts WARNING and above to a webhook from the running event loop.

	Records from hikari itself are skipped so delivery problems cannot feed
	back into the handler.
	"""

	def __init__(
		self,
		target: WebhookTarget,
		*,
		rest_app: Optional[hikari.RESTApp] = None,
		level: int = logging.WARNING,
	) -> None:
		super().__init__(level)
		self.target = target
		self.rest_app = rest_app or hikari.RESTApp()
		self._started = False
		self._pending: set[asyncio.Task] = set()

	def build_embed(self, record: logging.LogRecord) -> hikari.Embed:
		return hikari.Embed(
			description=format_record(record)[:4096],
			timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc),
		)

	def emit(self, record: logging.LogRecord) -> None:
		if record.name.startswith("hikari"):
			return
		try:
			loop = asyncio.get_running_loop()
		except RuntimeError:
			return
		try:
			embed = self.build_embed(record)
		except Exception:
			self.handleError(record)
			return
		task = loop.create_task(self._send(embed))
		self._pending.add(task)
		task.add_done_callback(self._pending.discard)

	async def _send(self, embed: hikari.Embed) -> None:
		try:
			if not self._started:
				await self.rest_app.start()
				self._started = True
			async with self.rest_app.acquire(None) as rest:
				await rest.execute_webhook(self.target.webhook_id, self.target.token, embeds=[embed])
		except Exception:
			traceback.print_exc(file=sys.stderr)

	async def aclose(self) -> None:
		if self._pending:
			await asyncio.gather(*self._pending, return_exceptions=True)
		if self._started:
			await self.rest_app.close()
			self._started = False


def setup_logging(level: str = "INFO", logs_webhook: Optional[WebhookTarget] = None) -> Optional[WebhookLogHandler]:
	"""Configure root logging; installs the webhook forwarder when a target is given."""
	logging.basicConfig(
		level=getattr(logging, level.upper(), logging.INFO),
		format=LOG_FORMAT,
		datefmt="%Y-%m-%d %H:%M:%S",
		force=True,
	)
	if logs_webhook is None:
		return None
	handler = WebhookLogHandler(logs_webhook)
	logging.getLogger().addHandler(handler)
	return handler
