"""Rendering of search results into the results panel.

Every function here leaves the input's ``aria-expanded`` attribute equal to
"the results panel is visible".
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from sitesmith.runtime.dom import Element, create_element
from sitesmith.search.models import Hit, SearchDocument


NO_RESULTS_MESSAGE = "No results found."


def results_heading(count: int, query: str) -> str:
    plural = "" if count == 1 else "s"
    return f'{count} Search Result{plural} for "{query}"'


def _set_visible(panel: Element, search_input: Element, visible: bool) -> None:
    panel.hidden = not visible
    search_input.set_attribute("aria-expanded", "true" if visible else "false")


def clear_results(panel: Element, search_input: Element) -> None:
    """Remove rendered results and hide the panel."""
    panel.clear()
    _set_visible(panel, search_input, False)


def render_results(
    panel: Element,
    search_input: Element,
    query: str,
    hits: Sequence[Hit],
    lookup: Callable[[str], SearchDocument | None],
) -> None:
    """Replace the panel content with ``hits`` for ``query`` and show it.

    Hits whose document can no longer be found are left out of the list but
    still counted in the heading.
    """
    panel.clear()

    if not hits:
        panel.append_child(create_element("p", text=NO_RESULTS_MESSAGE))
        _set_visible(panel, search_input, True)
        return

    wrapper = create_element("div", classes=("search-results-wrapper",))
    wrapper.append_child(
        create_element("h2", text=results_heading(len(hits), query), classes=("search-results-heading",))
    )
    result_list = wrapper.append_child(create_element("ul"))
    for hit in hits:
        document = lookup(hit.ref)
        if document is None:
            continue
        list_item = result_list.append_child(create_element("li"))
        list_item.append_child(create_element("a", text=document.title or document.ref, href=document.ref))
        if document.description:
            list_item.append_child(create_element("p", text=document.description))

    panel.append_child(wrapper)
    _set_visible(panel, search_input, True)


def render_html(panel: Element) -> str:
    """Serialize the panel's rendered children to HTML."""
    return "".join(child.to_html() for child in panel.children)
