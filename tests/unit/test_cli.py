"""Unit tests for the command-line entry point."""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from sitesmith import cli
from sitesmith.observability import tracing
from sitesmith.runtime.dom import Document


pytestmark = pytest.mark.unit


@pytest.fixture
def built_site(
    content_dir: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> Path:
    monkeypatch.chdir(tmp_path)
    output = tmp_path / "_site"
    exit_code = cli.main(["--plain-logs", "build", "--content", str(content_dir), "--output", str(output)])
    assert exit_code == 0
    return output


def test_build_command_reports_artifacts(built_site: Path, capsys: pytest.CaptureFixture[str]) -> None:
    out = capsys.readouterr().out

    assert "Loaded 4 items (3 posts)" in out
    assert "Search index: 4 documents" in out
    assert (built_site / "search-index.json").is_file()
    assert (built_site / "tag-pages.json").is_file()


def test_build_command_fails_for_missing_content(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)

    assert cli.main(["build", "--content", str(tmp_path / "missing")]) == 1


def test_search_command_against_local_index(built_site: Path, capsys: pytest.CaptureFixture[str]) -> None:
    capsys.readouterr()

    assert cli.main(["search", "--index", str(built_site / "search-index.json"), "python"]) == 0

    out = capsys.readouterr().out
    assert "/posts/python-tips/" in out
    assert "Python Tips" in out


def test_search_command_without_matches(built_site: Path, capsys: pytest.CaptureFixture[str]) -> None:
    capsys.readouterr()

    assert cli.main(["search", "--index", str(built_site / "search-index.json"), "haskell"]) == 0

    assert "No results found." in capsys.readouterr().out


def test_search_command_with_unreadable_index(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    broken = tmp_path / "search-index.json"
    broken.write_text("{broken", encoding="utf-8")

    assert cli.main(["search", "--index", str(broken), "rust"]) == 1
    assert cli.main(["search", "--index", str(tmp_path / "absent.json"), "rust"]) == 1


def test_search_command_against_remote_index(
    built_site: Path,
    capsys: pytest.CaptureFixture[str],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    payload = (built_site / "search-index.json").read_bytes()
    requested: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(str(request.url))
        return httpx.Response(200, content=payload)

    original = httpx.AsyncClient
    transport = httpx.MockTransport(handler)
    monkeypatch.setattr(httpx, "AsyncClient", lambda **kwargs: original(transport=transport, **kwargs))
    capsys.readouterr()

    url = "https://blog.test/search-index.json"
    assert cli.main(["search", "--url", url, "--html", "python"]) == 0

    out = capsys.readouterr().out
    assert requested == [url]
    assert '<a href="/posts/python-tips/">Python Tips</a>' in out
    assert "Search Result for &quot;python&quot;" in out


def test_search_command_reports_unreachable_remote(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.chdir(tmp_path)
    original = httpx.AsyncClient
    transport = httpx.MockTransport(lambda request: httpx.Response(404))
    monkeypatch.setattr(httpx, "AsyncClient", lambda **kwargs: original(transport=transport, **kwargs))

    assert cli.main(["search", "--url", "https://blog.test/search-index.json", "rust"]) == 1
    assert "Search is unavailable" in capsys.readouterr().out


def test_search_requires_a_source() -> None:
    with pytest.raises(SystemExit):
        cli.main(["search", "rust"])


def test_search_command_without_search_form(
    capsys: pytest.CaptureFixture[str],
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(cli, "build_search_document", Document)

    assert cli.main(["search", "--url", "https://blog.test/search-index.json", "rust"]) == 1
    assert "no search form" in capsys.readouterr().out


def test_trace_flag_prints_build_spans(
    content_dir: Path,
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setitem(tracing._tracer_holder, "tracer", None)
    monkeypatch.setattr(tracing.trace, "set_tracer_provider", lambda provider: None)

    args = ["--trace", "--plain-logs", "build", "--content", str(content_dir), "--output", str(tmp_path / "_site")]
    assert cli.main(args) == 0

    err = capsys.readouterr().err
    assert '"name": "site.build"' in err
    assert '"name": "search.build_index"' in err
    assert '"sitesmith.stage": "build"' in err
