import hikari
import pytest

from functionality.stream_watch.models import EventType
from functionality.stream_watch.notifier import HOOK_NAME, Notification, StreamNotifier, WebhookTarget


class StubRest:
	def __init__(self, fail: bool = False):
		self.fail = fail
		self.sent: list[tuple[int, str, dict]] = []

	async def execute_webhook(self, webhook, token, **kwargs):
		if self.fail:
			raise RuntimeError("webhook down")
		self.sent.append((webhook, token, kwargs))


class StubRestApp:
	def __init__(self, rest: StubRest):
		self.rest = rest
		self.started = 0
		self.closed = 0

	async def start(self):
		self.started += 1

	async def close(self):
		self.closed += 1

	def acquire(self, token=None, token_type=None):
		return self

	async def __aenter__(self):
		return self.rest

	async def __aexit__(self, *exc):
		return False


def _notifier(enabled, rest=None):
	rest = rest or StubRest()
	app = StubRestApp(rest)
	return StreamNotifier(WebhookTarget(123, "tok"), enabled, rest_app=app), app, rest


@pytest.mark.asyncio
async def test_send_executes_webhook_with_thumbnail():
	notifier, app, rest = _notifier({EventType.LIVE})
	embed = hikari.Embed(title="x")
	ok = await notifier.send(Notification(EventType.LIVE, "<@&1> alice is live", embed, b"jpg"))
	assert ok is True
	webhook, token, kwargs = rest.sent[0]
	assert (webhook, token) == (123, "tok")
	assert kwargs["content"] == "<@&1> alice is live"
	assert kwargs["username"] == HOOK_NAME
	assert kwargs["role_mentions"] is True
	assert kwargs["embeds"][0].image is not None
	assert app.started == 1


@pytest.mark.asyncio
async def test_disabled_event_is_not_sent():
	notifier, _, rest = _notifier({EventType.VOD})
	assert notifier.is_enabled(EventType.VOD)
	assert not notifier.is_enabled(EventType.UPDATE)
	ok = await notifier.send(Notification(EventType.UPDATE, "x", hikari.Embed(title="x")))
	assert ok is False
	assert rest.sent == []


@pytest.mark.asyncio
async def test_send_without_thumbnail_leaves_image_unset():
	notifier, _, rest = _notifier({EventType.VOD})
	await notifier.send(Notification(EventType.VOD, "", hikari.Embed(title="x")))
	_, _, kwargs = rest.sent[0]
	assert kwargs["embeds"][0].image is None
	assert kwargs["content"] is hikari.UNDEFINED


@pytest.mark.asyncio
async def test_send_failure_is_reported_not_raised():
	notifier, _, _ = _notifier({EventType.LIVE}, StubRest(fail=True))
	ok = await notifier.send(Notification(EventType.LIVE, "x", hikari.Embed(title="x")))
	assert ok is False


@pytest.mark.asyncio
async def test_start_close_are_idempotent():
	notifier, app, _ = _notifier(set())
	await notifier.start()
	await notifier.start()
	await notifier.close()
	await notifier.close()
	assert (app.started, app.closed) == (1, 1)
