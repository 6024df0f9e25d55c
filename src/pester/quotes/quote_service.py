# src/pester/quotes/quote_service.py

from __future__ import annotations

import logging
from collections.abc import Callable

from ..core.clock import epoch_day
from .quote_client import Quote, QuoteClient
from .settings_store import SettingsStore

logger = logging.getLogger(__name__)

DEFAULT_REFERENCE = "Bible"


class QuoteService:
    """
    QuoteProvider backed by SettingsStore (cache) and QuoteClient (network).

    The cached quote is refreshed at most once per local day unless forced.
    """

    def __init__(
        self,
        settings_store: SettingsStore,
        client: QuoteClient,
        *,
        today: Callable[[], int] = epoch_day,
    ) -> None:
        self.settings_store = settings_store
        self.client = client
        self._today = today

    def quotes_enabled(self) -> bool:
        return self.settings_store.get_show_quotes()

    def set_quotes_enabled(self, enabled: bool) -> None:
        self.settings_store.set_show_quotes(enabled)

    def get_cached_quote(self) -> Quote | None:
        text, reference, _day = self.settings_store.get_quote_fields()
        if not text:
            return None
        return Quote(text=text, reference=reference or DEFAULT_REFERENCE)

    def is_stale(self) -> bool:
        text, _reference, day = self.settings_store.get_quote_fields()
        return not text or day != self._today()

    def refresh_quote_if_stale(self, force: bool = False) -> None:
        """Best-effort refresh; never raises. No-op while quotes are disabled."""
        try:
            if not self.quotes_enabled():
                return
            if not force and not self.is_stale():
                return

            quote = self.client.fetch_random()
            if quote is None:
                logger.debug("Quote refresh produced nothing; keeping cached quote")
                return

            self.settings_store.save_quote(
                text=quote.text,
                reference=quote.reference,
                epoch_day=self._today(),
            )
            logger.info("Cached new quote reference=%s", quote.reference)
        except Exception:
            logger.warning("Quote refresh failed", exc_info=True)
