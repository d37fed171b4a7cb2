"""Unit tests for the runtime search engine."""

from __future__ import annotations

import logging

import httpx
import orjson
import pytest

from sitesmith.config import Settings
from sitesmith.runtime.dom import Document, SubmitEvent, build_search_document
from sitesmith.runtime.engine import EngineState, IndexLoadError, SearchEngine, fetch_index
from sitesmith.search.backend import SearchIndex
from sitesmith.search.indexer import build_index
from sitesmith.search.models import SearchDocument


pytestmark = pytest.mark.unit

INDEX_URL = "https://site.test/search-index.json"


def _index_payload() -> bytes:
    return build_index(
        [
            SearchDocument(ref="/rust/", title="Rust Guide", description="Ownership explained"),
            SearchDocument(ref="/about/", title="About", description="about Rust and Python"),
            SearchDocument(ref="/python/", title="Python Tips", tags=("python",)),
        ]
    ).serialize()


def _tampered_payload(edit) -> bytes:
    data = orjson.loads(_index_payload())
    edit(data)
    return orjson.dumps(data)


def _negative_position(data: dict) -> None:
    data["p"]["title"]["rust"][0]["p"] = [-1]


def _unknown_analyzer(data: dict) -> None:
    data["s"]["fields"][1]["analyzer_name"] = "bogus"


def _client(payload: bytes = b"", *, status: int = 200, calls: list[str] | None = None) -> httpx.AsyncClient:
    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(str(request.url))
        return httpx.Response(status, content=payload or _index_payload())

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _engine(client: httpx.AsyncClient | None, page: Document | None = None, **kwargs) -> SearchEngine:
    engine = SearchEngine.mount(page or build_search_document(), index_url=INDEX_URL, client=client, **kwargs)
    assert engine is not None
    return engine


def _links(engine: SearchEngine) -> list[str | None]:
    return [link.get_attribute("href") for link in engine.results.find_all("a")]


def _heading(engine: SearchEngine) -> str:
    (heading,) = engine.results.find_all("h2")
    return heading.text_content


@pytest.mark.asyncio
async def test_start_loads_index_once() -> None:
    calls: list[str] = []
    async with _client(calls=calls) as client:
        engine = _engine(client)
        assert engine.state is EngineState.UNINITIALIZED

        assert await engine.start() is EngineState.READY
        assert await engine.start() is EngineState.READY

    assert calls == [INDEX_URL]
    assert engine.index is not None
    assert engine.results.get_attribute("aria-live") == "polite"


@pytest.mark.asyncio
async def test_search_renders_ranked_results() -> None:
    async with _client() as client:
        engine = _engine(client)
        await engine.start()

        hits = engine.search("rust")

    assert [hit.ref for hit in hits] == ["/rust/", "/about/"]
    assert _links(engine) == ["/rust/", "/about/"]
    assert _heading(engine) == '2 Search Results for "rust"'
    assert not engine.results.hidden
    assert engine.input.get_attribute("aria-expanded") == "true"


@pytest.mark.asyncio
async def test_single_result_heading_is_singular() -> None:
    async with _client() as client:
        engine = _engine(client)
        await engine.start()

        engine.search("tips")

    assert _heading(engine) == '1 Search Result for "tips"'


@pytest.mark.asyncio
async def test_no_matches_shows_message_and_expands() -> None:
    async with _client() as client:
        engine = _engine(client)
        await engine.start()

        assert engine.search("haskell") == []

    assert [child.text_content for child in engine.results.children] == ["No results found."]
    assert not engine.results.hidden
    assert engine.input.get_attribute("aria-expanded") == "true"


@pytest.mark.asyncio
@pytest.mark.parametrize("query", ["", "   "])
async def test_blank_query_clears_and_hides_panel(query: str) -> None:
    async with _client() as client:
        engine = _engine(client)
        await engine.start()
        engine.search("rust")

        assert engine.search(query) == []

    assert engine.results.hidden
    assert engine.results.children == []
    assert engine.input.get_attribute("aria-expanded") == "false"


def test_search_before_index_loaded_does_nothing() -> None:
    engine = _engine(None)

    assert engine.search("rust") == []
    assert engine.query("rust") == []
    assert engine.results.hidden
    assert engine.results.children == []


@pytest.mark.asyncio
async def test_http_error_disables_search(caplog) -> None:
    async with _client(b"missing", status=404) as client:
        engine = _engine(client)

        with caplog.at_level(logging.ERROR, logger="sitesmith.runtime.engine"):
            state = await engine.start()

        assert state is EngineState.FAILED
        assert engine.form.hidden
        assert engine.input.disabled
        assert engine.index is None
        assert engine.search("rust") == []
        assert engine.handle_input() is None

    errors = [record for record in caplog.records if record.levelno == logging.ERROR]
    assert len(errors) == 1
    assert "search index" in errors[0].getMessage()


@pytest.mark.asyncio
async def test_network_error_disables_search() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        engine = _engine(client)

        assert await engine.start() is EngineState.FAILED


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        b"{not json",
        b'{"v": 42}',
        b"[1, 2, 3]",
        _tampered_payload(_negative_position),
        _tampered_payload(_unknown_analyzer),
    ],
    ids=["not-json", "wrong-version", "not-an-object", "negative-position", "unknown-analyzer"],
)
async def test_malformed_index_disables_search(payload: bytes) -> None:
    async with _client(payload) as client:
        engine = _engine(client)

        assert await engine.start() is EngineState.FAILED
        assert engine.form.hidden
        assert engine.search("rust") == []


@pytest.mark.asyncio
async def test_unexpected_load_error_disables_search(monkeypatch: pytest.MonkeyPatch) -> None:
    def explode(payload):
        raise RuntimeError("backend bug")

    monkeypatch.setattr(SearchIndex, "load", staticmethod(explode))
    async with _client() as client:
        engine = _engine(client)

        assert await engine.start() is EngineState.FAILED

    assert engine.form.hidden
    assert engine.input.disabled


@pytest.mark.asyncio
async def test_fetch_index_wraps_errors() -> None:
    async with _client(b"nope") as client:
        with pytest.raises(IndexLoadError, match="parse"):
            await fetch_index(client, INDEX_URL)

    async with _client(status=500) as client:
        with pytest.raises(IndexLoadError, match="fetch"):
            await fetch_index(client, INDEX_URL)


@pytest.mark.asyncio
async def test_submit_prevents_navigation_and_searches_immediately() -> None:
    async with _client() as client:
        engine = _engine(client)
        await engine.start()
        engine.input.value = "python"
        event = SubmitEvent(target=engine.form)

        hits = engine.handle_submit(event)

    assert event.default_prevented
    assert [hit.ref for hit in hits] == ["/python/", "/about/"]
    assert _links(engine) == ["/python/", "/about/"]


@pytest.mark.asyncio
async def test_submit_after_failure_still_prevents_navigation() -> None:
    async with _client(status=503) as client:
        engine = _engine(client)
        await engine.start()
        event = SubmitEvent()

        assert engine.handle_submit(event) == []

    assert event.default_prevented


@pytest.mark.asyncio
async def test_debounced_input_only_renders_latest_value() -> None:
    async with _client() as client:
        engine = _engine(client, debounce=0.01)
        await engine.start()

        engine.input.value = "py"
        first = engine.handle_input()
        engine.input.value = "rust"
        second = engine.handle_input()
        await engine.wait_idle()

    assert first is not None
    assert second is not None
    assert first.result() == []
    assert [hit.ref for hit in second.result()] == ["/rust/", "/about/"]
    assert _heading(engine) == '2 Search Results for "rust"'


@pytest.mark.asyncio
async def test_submit_supersedes_pending_debounced_search() -> None:
    async with _client() as client:
        engine = _engine(client, debounce=0.01)
        await engine.start()

        engine.input.value = "pyth"
        pending = engine.handle_input()
        engine.input.value = "rust"
        engine.handle_submit(SubmitEvent())
        await engine.wait_idle()

    assert pending is not None
    assert pending.result() == []
    assert _links(engine) == ["/rust/", "/about/"]


@pytest.mark.asyncio
async def test_debounced_blank_input_clears_results() -> None:
    async with _client() as client:
        engine = _engine(client, debounce=0)
        await engine.start()
        engine.search("rust")

        engine.input.value = "  "
        engine.handle_input()
        await engine.wait_idle()

    assert engine.results.hidden
    assert engine.input.get_attribute("aria-expanded") == "false"


@pytest.mark.asyncio
async def test_aclose_cancels_pending_searches() -> None:
    async with _client() as client:
        engine = _engine(client, debounce=10)
        await engine.start()
        engine.input.value = "rust"
        task = engine.handle_input()

        await engine.aclose()

    assert task is not None
    assert task.cancelled()
    assert engine.results.hidden


def test_mount_returns_none_without_search_ui() -> None:
    page = build_search_document()
    del page.elements["search-results"]

    assert SearchEngine.mount(page, index_url=INDEX_URL) is None


@pytest.mark.asyncio
async def test_from_settings_uses_configured_url_and_delay(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.chdir(tmp_path)
    settings = Settings(site_base_url="https://site.test/", search_debounce_ms=50)
    calls: list[str] = []

    async with _client(calls=calls) as client:
        engine = SearchEngine.from_settings(build_search_document(), settings, client=client)
        assert engine is not None
        await engine.start()

    assert engine.debounce == pytest.approx(0.05)
    assert calls == [INDEX_URL]


@pytest.mark.asyncio
async def test_engine_owns_client_when_none_given(monkeypatch: pytest.MonkeyPatch) -> None:
    payload = _index_payload()
    transport = httpx.MockTransport(lambda request: httpx.Response(200, content=payload))
    original = httpx.AsyncClient

    def _factory(**kwargs):
        return original(transport=transport, **kwargs)

    monkeypatch.setattr(httpx, "AsyncClient", _factory)
    engine = _engine(None)

    assert await engine.start() is EngineState.READY
    assert engine.index is not None
