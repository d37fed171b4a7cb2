"""Command-line entry point.

    sitesmith build --content ./content --output ./_site
    sitesmith search --index ./_site/search-index.json "rust guide"
    sitesmith search --url https://example.com/search-index.json "rust"
"""

# ruff: noqa: T201  # CLI intentionally prints operator feedback

from __future__ import annotations

import argparse
import asyncio
from collections.abc import Sequence
import logging
from pathlib import Path
import sys
import textwrap

from opentelemetry.sdk.trace.export import ConsoleSpanExporter

from sitesmith.build import build_site
from sitesmith.config import Settings
from sitesmith.content.loader import ContentLoadError
from sitesmith.observability.logging import configure_logging
from sitesmith.observability.tracing import init_tracing
from sitesmith.runtime.dom import SubmitEvent, build_search_document
from sitesmith.runtime.engine import QUERY_FIELD_BOOSTS, EngineState, SearchEngine
from sitesmith.runtime.render import render_html
from sitesmith.search.backend import SearchIndex
from sitesmith.search.storage import StorageError


logger = logging.getLogger(__name__)


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sitesmith",
        description="Build tag pages and the search index for a content site",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent(
            """
            Settings not given on the command line come from SITESMITH_* environment
            variables or a local .env file.
            """
        ).strip(),
    )
    parser.add_argument("--log-level", help="Override SITESMITH_LOG_LEVEL")
    parser.add_argument("--plain-logs", action="store_true", help="Human-readable logs instead of JSON")
    parser.add_argument("--trace", action="store_true", help="Print OpenTelemetry spans to stderr")
    subparsers = parser.add_subparsers(dest="command", required=True)

    build = subparsers.add_parser("build", help="Generate tag page manifest and search index")
    build.add_argument("--content", type=Path, help="Content directory (default: SITESMITH_CONTENT_DIR)")
    build.add_argument("--output", type=Path, help="Output directory (default: SITESMITH_OUTPUT_DIR)")
    build.add_argument("--page-size", type=int, help="Posts per tag page (default: SITESMITH_TAG_PAGE_SIZE)")
    build.add_argument("--include-content", action="store_true", help="Index body text as well")

    search = subparsers.add_parser("search", help="Query a built search index")
    source = search.add_mutually_exclusive_group(required=True)
    source.add_argument("--index", type=Path, help="Path to a local search-index.json")
    source.add_argument("--url", help="URL of a published search-index.json")
    search.add_argument("--html", action="store_true", help="Print the rendered results panel as HTML")
    search.add_argument("query", help="Search query")
    return parser


def _settings_from_args(args: argparse.Namespace) -> Settings:
    overrides: dict[str, object] = {}
    if args.log_level:
        overrides["log_level"] = args.log_level
    if args.trace:
        overrides["trace_spans"] = True
    if getattr(args, "content", None):
        overrides["content_dir"] = args.content
    if getattr(args, "output", None):
        overrides["output_dir"] = args.output
    if getattr(args, "page_size", None) is not None:
        overrides["tag_page_size"] = args.page_size
    if getattr(args, "include_content", False):
        overrides["search_include_content"] = True
    return Settings(**overrides)


def run_build(settings: Settings) -> int:
    try:
        result = build_site(settings)
    except (ContentLoadError, StorageError) as exc:
        logger.error("Build failed: %s", exc)
        return 1

    print(f"Loaded {result.items_loaded} items ({result.posts} posts)")
    print(f"Tag pages: {result.tag_pages} across {len(result.tag_counts)} tags -> {result.manifest_path}")
    print(f"Search index: {result.documents_indexed} documents -> {result.index_path}")
    print(f"Finished in {result.duration_s:.2f}s")
    return 0


def run_local_search(index_path: Path, query: str) -> int:
    try:
        index = SearchIndex.load(index_path.read_bytes())
    except (OSError, StorageError) as exc:
        logger.error("Unable to load search index %s: %s", index_path, exc)
        return 1

    hits = index.query(query, field_boosts=QUERY_FIELD_BOOSTS, expand=True)
    if not hits:
        print("No results found.")
        return 0
    for hit in hits:
        document = index.get_document(hit.ref)
        title = document.title if document else hit.ref
        print(f"{hit.score:8.3f}  {title}  {hit.ref}")
    return 0


async def run_remote_search(settings: Settings, url: str, query: str, *, as_html: bool) -> int:
    document = build_search_document()
    remote = settings.model_copy(update={"site_base_url": url, "search_index_path": ""})
    engine = SearchEngine.from_settings(document, remote)
    if engine is None:
        print("Search is unavailable: the page has no search form.")
        return 1
    try:
        state = await engine.start()
        if state is not EngineState.READY:
            print("Search is unavailable: the index could not be loaded.")
            return 1
        engine.input.value = query
        hits = engine.handle_submit(SubmitEvent(target=engine.form))
    finally:
        await engine.aclose()

    if as_html:
        print(render_html(engine.results))
        return 0
    if not hits:
        print("No results found.")
    for hit in hits:
        print(f"{hit.score:8.3f}  {hit.ref}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_argument_parser()
    args = parser.parse_args(argv)
    settings = _settings_from_args(args)
    configure_logging(settings.log_level, json_output=settings.log_json and not args.plain_logs)
    if settings.trace_spans:
        init_tracing(
            resource_attributes={"sitesmith.command": args.command},
            exporter=ConsoleSpanExporter(out=sys.stderr),
        )

    if args.command == "build":
        return run_build(settings)
    if args.index is not None:
        return run_local_search(args.index, args.query)
    return asyncio.run(run_remote_search(settings, args.url, args.query, as_html=args.html))


if __name__ == "__main__":
    sys.exit(main())
