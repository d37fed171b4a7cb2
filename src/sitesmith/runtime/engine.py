"""Runtime search engine bound to the page's search form.

Lifecycle::

    UNINITIALIZED --start()--> LOADING --index parsed--> READY
                                       \\--fetch/parse error--> FAILED

``READY`` and ``FAILED`` are terminal: the index is fetched once per engine and
never re-fetched. A failed load is logged once and disables the search UI.

Keystrokes schedule debounced searches. Every scheduled or submitted search
takes a new sequence number, and a debounced task only touches the results
panel if its number is still the latest when it fires, so stale input never
renders over fresher input.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from enum import Enum
import logging
from typing import Any

import httpx

from sitesmith.config import Settings
from sitesmith.observability.context import stage_context
from sitesmith.observability.tracing import create_span
from sitesmith.runtime.dom import Document, Element, SubmitEvent
from sitesmith.runtime.render import clear_results, render_results
from sitesmith.search.backend import SearchBackend, SearchIndex
from sitesmith.search.models import Hit
from sitesmith.search.schema import SITE_FIELD_BOOSTS
from sitesmith.search.storage import StorageError


logger = logging.getLogger(__name__)

FORM_ID = "search-form"
INPUT_ID = "search-input"
RESULTS_ID = "search-results"
DEFAULT_DEBOUNCE_SECONDS = 0.2

QUERY_FIELD_BOOSTS: Mapping[str, float] = SITE_FIELD_BOOSTS


class EngineState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class IndexLoadError(RuntimeError):
    """Raised internally when the index cannot be fetched or parsed."""


async def fetch_index(
    client: httpx.AsyncClient,
    url: str,
    backend: type[SearchBackend] = SearchIndex,
) -> SearchBackend:
    """Fetch and parse the serialized index at ``url``."""
    try:
        response = await client.get(url)
        response.raise_for_status()
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        msg = f"Failed to fetch search index from {url}: {exc}"
        raise IndexLoadError(msg) from exc

    try:
        return backend.load(response.content)
    except (StorageError, ValueError, TypeError, OverflowError) as exc:
        msg = f"Failed to parse search index from {url}: {exc}"
        raise IndexLoadError(msg) from exc


class SearchEngine:
    """Owns the loaded index and drives the search form, input and results panel."""

    def __init__(
        self,
        form: Element,
        search_input: Element,
        results: Element,
        *,
        index_url: str,
        client: httpx.AsyncClient | None = None,
        debounce: float = DEFAULT_DEBOUNCE_SECONDS,
        backend: type[SearchBackend] = SearchIndex,
        field_boosts: Mapping[str, float] | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.form = form
        self.input = search_input
        self.results = results
        self.index_url = index_url
        self.debounce = debounce
        self.timeout = timeout
        self._backend = backend
        self._field_boosts = dict(field_boosts or QUERY_FIELD_BOOSTS)
        self._client = client
        self._owns_client = client is None
        self._index: SearchBackend | None = None
        self._state = EngineState.UNINITIALIZED
        self._load_task: asyncio.Task[None] | None = None
        self._sequence = 0
        self._pending: set[asyncio.Task[Any]] = set()
        self.results.set_attribute("aria-live", "polite")

    @classmethod
    def mount(cls, document: Document, **kwargs: Any) -> SearchEngine | None:
        """Bind to the standard element ids; ``None`` if any element is absent."""
        form = document.get_element_by_id(FORM_ID)
        search_input = document.get_element_by_id(INPUT_ID)
        results = document.get_element_by_id(RESULTS_ID)
        if form is None or search_input is None or results is None:
            logger.debug("Search UI not present on page; engine not mounted")
            return None
        return cls(form, search_input, results, **kwargs)

    @classmethod
    def from_settings(cls, document: Document, settings: Settings, **kwargs: Any) -> SearchEngine | None:
        """Mount using the configured index URL, debounce delay and fetch timeout."""
        return cls.mount(
            document,
            index_url=settings.search_index_url(),
            debounce=settings.search_debounce_ms / 1000,
            timeout=settings.search_fetch_timeout,
            **kwargs,
        )

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def index(self) -> SearchBackend | None:
        return self._index

    @property
    def sequence(self) -> int:
        return self._sequence

    async def start(self) -> EngineState:
        """Fetch the index on first call; later calls wait for the same load."""
        if self._load_task is None:
            self._state = EngineState.LOADING
            self._load_task = asyncio.create_task(self._load())
        await asyncio.shield(self._load_task)
        return self._state

    async def _load(self) -> None:
        with stage_context("search"):
            await self._load_index()

    async def _load_index(self) -> None:
        client = self._client or httpx.AsyncClient(timeout=self.timeout)
        try:
            with create_span("search.load_index", attributes={"search.index_url": self.index_url}):
                self._index = await fetch_index(client, self.index_url, self._backend)
        except IndexLoadError as exc:
            logger.error("Error fetching or parsing search index: %s", exc)
            self._fail()
        except Exception as exc:
            # the host page must never see a load error
            logger.error("Unexpected error loading search index from %s: %s", self.index_url, exc, exc_info=True)
            self._fail()
        else:
            self._state = EngineState.READY
            logger.info("Search index loaded from %s", self.index_url)
        finally:
            if self._owns_client:
                await client.aclose()

    def _fail(self) -> None:
        self._state = EngineState.FAILED
        self._index = None
        self.form.hidden = True
        self.input.disabled = True
        clear_results(self.results, self.input)

    def query(self, text: str) -> list[Hit]:
        """Run a weighted, prefix-expanding query without touching the UI."""
        if self._state is not EngineState.READY or self._index is None or not text.strip():
            return []
        return self._index.query(text, field_boosts=self._field_boosts, expand=True)

    def clear(self) -> None:
        clear_results(self.results, self.input)

    def search(self, query: str) -> list[Hit]:
        """Search and render the results panel.

        A blank query clears and hides the panel. A non-blank query before the
        index is ready does nothing.
        """
        if not query or not query.strip():
            self.clear()
            return []
        if self._state is not EngineState.READY or self._index is None:
            return []

        hits = self.query(query)
        render_results(self.results, self.input, query, hits, self._index.get_document)
        logger.debug("Rendered %d hits for query %r", len(hits), query)
        return hits

    def handle_submit(self, event: SubmitEvent | None = None) -> list[Hit]:
        """Search immediately and keep the browser from navigating."""
        if event is not None:
            event.prevent_default()
        if self._state is EngineState.FAILED:
            return []
        self._sequence += 1
        return self.search(self.input.value)

    def handle_input(self) -> asyncio.Task[list[Hit]] | None:
        """Schedule a debounced search for the current input value."""
        if self._state is EngineState.FAILED:
            return None
        self._sequence += 1
        task = asyncio.get_running_loop().create_task(self._debounced(self._sequence))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _debounced(self, sequence: int) -> list[Hit]:
        await asyncio.sleep(self.debounce)
        if sequence != self._sequence:
            return []
        value = self.input.value
        if value.strip():
            return self.search(value)
        self.clear()
        return []

    async def wait_idle(self) -> None:
        """Wait for every scheduled debounced search to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    async def aclose(self) -> None:
        for task in list(self._pending):
            task.cancel()
        await asyncio.gather(*list(self._pending), return_exceptions=True)
        if self._load_task is not None and not self._load_task.done():
            self._load_task.cancel()
            await asyncio.gather(self._load_task, return_exceptions=True)
