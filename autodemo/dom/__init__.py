"""Document query capability and its in-memory implementation."""

from autodemo.dom.document import DocumentQuery
from autodemo.dom.inmemory import Element, InMemoryDocument

__all__ = ["DocumentQuery", "Element", "InMemoryDocument"]
