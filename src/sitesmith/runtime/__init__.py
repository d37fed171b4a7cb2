"""Runtime search engine, UI element model, and result rendering."""

from sitesmith.runtime.dom import Document, Element, SubmitEvent, build_search_document
from sitesmith.runtime.engine import EngineState, IndexLoadError, SearchEngine, fetch_index
from sitesmith.runtime.render import clear_results, render_html, render_results


__all__ = [
    "Document",
    "Element",
    "EngineState",
    "IndexLoadError",
    "SearchEngine",
    "SubmitEvent",
    "build_search_document",
    "clear_results",
    "fetch_index",
    "render_html",
    "render_results",
]
