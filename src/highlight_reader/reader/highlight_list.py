"""
Highlight List - Scoped listing of a book's highlights and their comments
"""

import logging
from typing import Callable, Dict, List, Optional

from ..highlights.models import Highlight
from ..session import Preferences, UserSession
from ..store.highlight_store import Book, CollectionChange, HighlightStore, Scope, Subscription

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[List[Highlight], CollectionChange], None]


class HighlightList:
    """
    Highlights of one book, either the user's own or everyone's public ones

    Keeps at most one live store listener per scope; loading a scope again
    only swaps the callback.
    """

    def __init__(self, book: Book, store: HighlightStore, session: UserSession, preferences: Preferences):
        self.book = book
        self.store = store
        self.session = session
        self.preferences = preferences
        self._subscriptions: Dict[Scope, Subscription] = {}
        self._items: Dict[Scope, List[Highlight]] = {}
        self._callbacks: Dict[Scope, ChangeCallback] = {}

    @property
    def show_others_highlight_list(self) -> bool:
        return self.preferences.show_others_highlight_list

    @property
    def scope(self) -> Scope:
        return Scope.from_preferences(self.preferences)

    @property
    def highlights(self) -> List[Highlight]:
        return list(self._items.get(self.scope, []))

    @property
    def highlights_count(self) -> int:
        return len(self._items.get(self.scope, []))

    def load_highlights(self, callback: Optional[ChangeCallback] = None) -> bool:
        """
        Start listening on the current scope

        Returns:
            False when there is no signed-in user, True otherwise
        """
        if self.session.is_anonymous:
            logger.warning("Not loading highlights without a signed-in user")
            return False

        scope = self.scope
        if callback is not None:
            self._callbacks[scope] = callback
        else:
            self._callbacks.pop(scope, None)

        if scope in self._subscriptions and self._subscriptions[scope].active:
            callback = self._callbacks.get(scope)
            if callback is not None:
                callback(self.highlights, CollectionChange())
            return True

        def on_change(highlights: List[Highlight], change: CollectionChange):
            self._items[scope] = highlights
            scope_callback = self._callbacks.get(scope)
            if scope_callback is not None:
                scope_callback(highlights, change)

        self._subscriptions[scope] = self.store.listen(self.book.id, scope, self.session.user_id, on_change)
        return True

    def highlight_at(self, index: int) -> Optional[Highlight]:
        items = self._items.get(self.scope, [])
        if not items or index < 0 or index >= len(items):
            return None
        return items[index]

    def comment_text(self, index: int) -> Optional[str]:
        """All comments of the highlight at index, one per line"""
        highlight = self.highlight_at(index)
        if highlight is None or not highlight.comments:
            return None
        return "".join(f"{comment.text or ''}\n" for comment in highlight.comments)

    def switch_highlight_list_range(self):
        self.preferences.show_others_highlight_list = not self.show_others_highlight_list

    def close(self):
        for subscription in self._subscriptions.values():
            subscription.cancel()
        self._subscriptions.clear()
