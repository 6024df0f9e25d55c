# src/pester/quotes/quote_client.py

from __future__ import annotations

import logging
import random
import re
from dataclasses import dataclass
from urllib.parse import quote as urlquote

import httpx

logger = logging.getLogger(__name__)

_WS_RE = re.compile(r"\s+")

VERSE_REFERENCE_POOL: tuple[str, ...] = (
    "Philippians 4:13",
    "Joshua 1:9",
    "Isaiah 41:10",
    "Romans 8:31",
    "Psalm 46:1",
    "2 Timothy 1:7",
    "Proverbs 3:5",
)


@dataclass(frozen=True, slots=True)
class Quote:
    text: str
    reference: str


class QuoteClient:
    """
    Fetches a random verse from a bible-api.com compatible endpoint.

    Every failure (timeout, transport error, non-2xx, malformed JSON, blank
    text) yields None; nothing is raised to the caller.
    """

    def __init__(
        self,
        *,
        base_url: str = "https://bible-api.com",
        timeout_seconds: float = 6.0,
        transport: httpx.BaseTransport | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = httpx.Timeout(timeout_seconds)
        self._transport = transport
        self._rng = rng or random.Random()

    def _url_for(self, reference: str) -> str:
        return f"{self.base_url}/{urlquote(reference, safe='')}"

    def fetch_random(self) -> Quote | None:
        reference = self._rng.choice(VERSE_REFERENCE_POOL)
        return self.fetch(reference)

    def fetch(self, reference: str) -> Quote | None:
        url = self._url_for(reference)
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                resp = client.get(url)
        except httpx.HTTPError as e:
            logger.warning("Quote fetch failed url=%s: %s", url, e)
            return None

        if not resp.is_success:
            logger.warning("Quote fetch non-2xx url=%s status=%s", url, resp.status_code)
            return None

        try:
            payload = resp.json()
        except ValueError:
            logger.warning("Quote fetch returned malformed JSON url=%s", url)
            return None
        if not isinstance(payload, dict):
            return None

        text = _WS_RE.sub(" ", str(payload.get("text") or "")).strip()
        api_reference = str(payload.get("reference") or "").strip()
        if not text:
            return None

        return Quote(text=text, reference=api_reference or reference)
