"""Highlights materialized on the page currently being read."""

from typing import Dict, Iterable, Iterator, Optional

from ..highlights.matcher import find_highlight
from ..highlights.models import Bounds, Highlight


class VisiblePageSet:
    """
    Insertion-ordered set of the current page's highlights, keyed by id.

    It only answers "did the tap land on an existing highlight"; the store
    owns the records. Lookups follow insertion order.
    """

    def __init__(self):
        self.page: Optional[int] = None
        self._items: Dict[str, Highlight] = {}

    def clear(self):
        self._items.clear()

    def add(self, highlight: Highlight):
        self._items[highlight.id] = highlight

    def replace(self, page: int, highlights: Iterable[Highlight]):
        """Clear and repopulate with the highlights on page"""
        self.page = page
        self._items = {}
        for highlight in highlights:
            if highlight.page == page:
                self._items[highlight.id] = highlight

    def find(self, query: Bounds) -> Optional[Highlight]:
        return find_highlight(self._items.values(), query)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Highlight]:
        return iter(list(self._items.values()))

    def __contains__(self, highlight: object) -> bool:
        return isinstance(highlight, Highlight) and highlight.id in self._items
