from __future__ import annotations

"""Localized notification strings.

Texts are looked up by MessageKey in a per-language table. Unknown languages
and keys missing from a table fall back to English.
"""

import logging
from enum import Enum
from typing import Any

log = logging.getLogger(__name__)

DEFAULT_LOCALE = "en"


class MessageKey(str, Enum):
	LIVE_CONTENT = "live_content"
	UPDATE_CONTENT = "update_content"
	VOD_CONTENT = "vod_content"
	PLAYING = "playing"
	STARTED_AT = "started_at"
	WATCH_AT = "watch_at"
	TIMESTAMPS = "timestamps"
	TOP_CLIPS = "top_clips"
	CLIP_VIEWS = "clip_views"
	VIDEO_REMOVED = "video_removed"


TRANSLATIONS: dict[str, dict[MessageKey, str]] = {
	"en": {
		MessageKey.LIVE_CONTENT: "{mention} {login} is live with **{game}**!",
		MessageKey.UPDATE_CONTENT: "{mention} {login} switched game to **{game}**!",
		MessageKey.VOD_CONTENT: "{mention} VOD [{duration}]",
		MessageKey.PLAYING: "Playing",
		MessageKey.STARTED_AT: "Started At",
		MessageKey.WATCH_AT: "Start watching at {link}",
		MessageKey.TIMESTAMPS: "Time Stamps",
		MessageKey.TOP_CLIPS: "Top Clips",
		MessageKey.CLIP_VIEWS: "{views} views",
		MessageKey.VIDEO_REMOVED: "<Video Removed>",
	},
	"de": {
		MessageKey.LIVE_CONTENT: "{mention} {login} ist live mit **{game}**!",
		MessageKey.UPDATE_CONTENT: "{mention} {login} spielt jetzt **{game}**!",
		MessageKey.VOD_CONTENT: "{mention} VOD [{duration}]",
		MessageKey.PLAYING: "Spielt",
		MessageKey.STARTED_AT: "Gestartet",
		MessageKey.WATCH_AT: "Ab hier ansehen: {link}",
		MessageKey.TIMESTAMPS: "Zeitstempel",
		MessageKey.TOP_CLIPS: "Top Clips",
		MessageKey.CLIP_VIEWS: "{views} Aufrufe",
		MessageKey.VIDEO_REMOVED: "<Video entfernt>",
	},
}


def locale_for(language: str | None) -> str:
	"""Map a stream language tag (e.g. "de", "en-gb") to a supported locale."""
	tag = (language or "").strip().lower().replace("_", "-").split("-")[0]
	return tag if tag in TRANSLATIONS else DEFAULT_LOCALE


def get_text(locale: str, key: MessageKey, **tokens: Any) -> str:
	table = TRANSLATIONS.get(locale)
	template = table.get(key) if table else None
	if template is None:
		if locale != DEFAULT_LOCALE:
			log.debug("No %s text for locale %r, using %s", key.value, locale, DEFAULT_LOCALE)
		template = TRANSLATIONS[DEFAULT_LOCALE][key]
	return template.format(**tokens) if tokens else template
