"""Abstract document query capability.

The orchestrator never touches a concrete document. Hosts inject an
implementation backed by whatever query engine they drive (a browser
bridge, a headless page, or the in-memory document used in tests).
"""

from abc import ABC, abstractmethod


class DocumentQuery(ABC):
    """Selector-level access to the hosting document.

    A selector that matches nothing is never an error; queries simply
    report no match.
    """

    @abstractmethod
    def exists(self, selector: str) -> bool:
        """Return True if at least one element matches selector."""
        pass

    @abstractmethod
    def add_marker(self, selector: str, marker: str) -> int:
        """Add marker to every element matching selector.

        Returns:
            Number of elements marked
        """
        pass

    @abstractmethod
    def clear_marker(self, marker: str) -> int:
        """Remove marker from every element carrying it.

        Returns:
            Number of elements cleared
        """
        pass

    @abstractmethod
    def count_marked(self, marker: str) -> int:
        """Number of elements currently carrying marker."""
        pass
