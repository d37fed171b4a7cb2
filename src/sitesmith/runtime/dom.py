"""Minimal element model for the search UI surface.

The runtime engine only needs a handful of DOM behaviors: element lookup by
id, attributes, the ``hidden`` flag, text content, children, and submit
events that can cancel their default navigation. ``Element.to_html`` renders
a subtree with escaped text and attribute values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from html import escape


_VOID_TAGS = frozenset({"input", "br", "hr", "img", "meta", "link"})


@dataclass(eq=False)
class Element:
    tag: str
    id: str | None = None
    attributes: dict[str, str] = field(default_factory=dict)
    class_list: list[str] = field(default_factory=list)
    children: list[Element] = field(default_factory=list)
    text_content: str = ""
    hidden: bool = False
    disabled: bool = False
    value: str = ""

    def set_attribute(self, name: str, value: str) -> None:
        self.attributes[name] = str(value)

    def get_attribute(self, name: str) -> str | None:
        return self.attributes.get(name)

    def append_child(self, child: Element) -> Element:
        self.children.append(child)
        return child

    def clear(self) -> None:
        """Drop all children and text, like assigning an empty ``innerHTML``."""
        self.children.clear()
        self.text_content = ""

    def iter(self):
        """Depth-first iteration over this element and its descendants."""
        yield self
        for child in self.children:
            yield from child.iter()

    def find_all(self, tag: str) -> list[Element]:
        return [element for element in self.iter() if element.tag == tag]

    def to_html(self) -> str:
        attrs: list[str] = []
        if self.id:
            attrs.append(f'id="{escape(self.id)}"')
        if self.class_list:
            attrs.append(f'class="{escape(" ".join(self.class_list))}"')
        for name, value in self.attributes.items():
            attrs.append(f'{name}="{escape(value)}"')
        if self.hidden:
            attrs.append("hidden")
        if self.disabled:
            attrs.append("disabled")
        opening = f"<{self.tag}{' ' if attrs else ''}{' '.join(attrs)}>"
        if self.tag in _VOID_TAGS:
            return opening
        inner = escape(self.text_content) + "".join(child.to_html() for child in self.children)
        return f"{opening}{inner}</{self.tag}>"


def create_element(tag: str, *, text: str = "", classes: tuple[str, ...] = (), **attributes: str) -> Element:
    return Element(tag=tag, text_content=text, class_list=list(classes), attributes=dict(attributes))


@dataclass
class Document:
    """A page: elements addressable by id."""

    elements: dict[str, Element] = field(default_factory=dict)

    def add(self, element: Element) -> Element:
        if not element.id:
            msg = "Only elements with an id can be registered on a document"
            raise ValueError(msg)
        self.elements[element.id] = element
        return element

    def get_element_by_id(self, element_id: str) -> Element | None:
        return self.elements.get(element_id)


@dataclass
class SubmitEvent:
    target: Element | None = None
    default_prevented: bool = False

    def prevent_default(self) -> None:
        self.default_prevented = True


def build_search_document(
    *,
    form_id: str = "search-form",
    input_id: str = "search-input",
    results_id: str = "search-results",
) -> Document:
    """Create a page holding the standard search form, input and results panel."""
    document = Document()
    form = document.add(Element(tag="form", id=form_id, attributes={"role": "search"}))
    search_input = document.add(
        Element(
            tag="input",
            id=input_id,
            attributes={"type": "search", "aria-controls": results_id, "aria-expanded": "false"},
        )
    )
    form.append_child(search_input)
    document.add(Element(tag="div", id=results_id, hidden=True))
    return document
