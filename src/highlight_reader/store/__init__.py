from .highlight_store import (
    Book,
    CollectionChange,
    HighlightStore,
    InMemoryHighlightStore,
    JSONHighlightStore,
    Scope,
    Subscription,
)

__all__ = [
    "Book",
    "CollectionChange",
    "HighlightStore",
    "InMemoryHighlightStore",
    "JSONHighlightStore",
    "Scope",
    "Subscription",
]
