"""Unit tests for InMemoryDocument."""

from autodemo.dom.inmemory import InMemoryDocument


class TestInMemoryDocument:
    """Tests for the in-memory document query capability."""

    def test_missing_selector_is_not_an_error(self, document: InMemoryDocument) -> None:
        """Queries for unknown selectors report no match."""
        assert document.exists("#missing") is False
        assert document.add_marker("#missing", "demo-highlight") == 0

    def test_element_matches_all_its_selectors(self, document: InMemoryDocument) -> None:
        """An element answers to every selector it was registered under."""
        document.add_element("#cta", ".button")
        assert document.exists("#cta")
        assert document.exists(".button")

    def test_add_marker_marks_every_match(self, document: InMemoryDocument) -> None:
        """All matching elements receive the marker."""
        document.add_element(".card")
        document.add_element(".card")
        document.add_element(".other")

        assert document.add_marker(".card", "demo-highlight") == 2
        assert document.count_marked("demo-highlight") == 2

    def test_clear_marker_removes_from_all(self, document: InMemoryDocument) -> None:
        """clear_marker removes the marker wherever it is present."""
        first = document.add_element("#a")
        document.add_element("#b")
        document.add_marker("#a", "demo-highlight")
        document.add_marker("#b", "demo-highlight")
        first.markers.add("other")

        assert document.clear_marker("demo-highlight") == 2
        assert document.count_marked("demo-highlight") == 0
        assert first.markers == {"other"}

    def test_remove_element(self, document: InMemoryDocument) -> None:
        """Removed elements no longer match."""
        element = document.add_element("#gone")
        document.remove_element(element)
        assert document.exists("#gone") is False
