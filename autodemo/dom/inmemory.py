"""In-memory implementation of DocumentQuery."""

from dataclasses import dataclass, field
from itertools import count

from autodemo.dom.document import DocumentQuery


@dataclass
class Element:
    """A fake element: the selectors it answers to and its markers."""

    element_id: int
    selectors: set[str]
    markers: set[str] = field(default_factory=set)


class InMemoryDocument(DocumentQuery):
    """In-memory document for headless runs and testing.

    Elements are registered under the exact selector strings they should
    match; there is no CSS engine behind it.
    """

    def __init__(self) -> None:
        self._elements: dict[int, Element] = {}
        self._ids = count(1)

    def add_element(self, *selectors: str) -> Element:
        """Register an element matching each of the given selectors."""
        element = Element(element_id=next(self._ids), selectors=set(selectors))
        self._elements[element.element_id] = element
        return element

    def remove_element(self, element: Element) -> None:
        self._elements.pop(element.element_id, None)

    def query_all(self, selector: str) -> list[Element]:
        return [e for e in self._elements.values() if selector in e.selectors]

    def exists(self, selector: str) -> bool:
        return any(selector in e.selectors for e in self._elements.values())

    def add_marker(self, selector: str, marker: str) -> int:
        matched = self.query_all(selector)
        for element in matched:
            element.markers.add(marker)
        return len(matched)

    def clear_marker(self, marker: str) -> int:
        cleared = 0
        for element in self._elements.values():
            if marker in element.markers:
                element.markers.discard(marker)
                cleared += 1
        return cleared

    def count_marked(self, marker: str) -> int:
        return sum(1 for e in self._elements.values() if marker in e.markers)
