"""
Highlight Store - Books, highlights and comment threads

Highlights are stored per book keyed by their content-derived id, so saving
the same selection twice updates one record instead of adding a second.
Listeners get the scoped, ordered collection plus the index changes after
every write to their book.
"""

import copy
import hashlib
import json
import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from ..errors import HighlightStoreError
from ..highlights.models import Comment, Highlight, utc_timestamp
from ..utils.file_utils import atomic_write_text, safe_read_text_file

logger = logging.getLogger(__name__)

STORE_FORMAT_VERSION = 1


class Scope(Enum):
    """Which highlights a listing shows"""

    MINE = "mine"
    ALL = "all"

    @classmethod
    def from_preferences(cls, preferences) -> "Scope":
        return cls.ALL if preferences.show_others_highlight_list else cls.MINE


@dataclass
class Book:
    """A PDF the user reads and highlights"""

    id: str
    title: Optional[str] = None
    author: Optional[str] = None
    contents_path: Optional[str] = None
    thumbnail_path: Optional[str] = None
    is_public: bool = True

    @classmethod
    def for_pdf(cls, pdf_path: Union[str, Path]) -> "Book":
        """Book keyed by the SHA-1 of the PDF bytes"""
        path = Path(pdf_path)
        digest = hashlib.sha1(path.read_bytes()).hexdigest()
        return cls(id=digest, title=path.stem, contents_path=str(path.absolute()))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "contents_path": self.contents_path,
            "thumbnail_path": self.thumbnail_path,
            "is_public": self.is_public,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Book":
        return cls(
            id=data["id"],
            title=data.get("title"),
            author=data.get("author"),
            contents_path=data.get("contents_path"),
            thumbnail_path=data.get("thumbnail_path"),
            is_public=bool(data.get("is_public", True)),
        )


@dataclass
class CollectionChange:
    """Index changes between two deliveries of a listened collection"""

    insertions: List[int] = field(default_factory=list)
    modifications: List[int] = field(default_factory=list)
    deletions: List[int] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.insertions or self.modifications or self.deletions)


ListenCallback = Callable[[List[Highlight], CollectionChange], None]


class Subscription:
    """Live query on one (book, scope, user) triple"""

    def __init__(self, store: "HighlightStore", book_id: str, scope: Scope,
                 user_id: Optional[str], callback: ListenCallback):
        self.store = store
        self.book_id = book_id
        self.scope = scope
        self.user_id = user_id
        self.callback = callback
        self.active = True
        self._last: List[Tuple[str, tuple]] = []

    def cancel(self):
        if self.active:
            self.active = False
            self.store._remove_subscription(self)

    def _diff(self, highlights: List[Highlight]) -> CollectionChange:
        previous = dict(self._last)
        current = [(h.id, _fingerprint(h)) for h in highlights]
        current_ids = {hid for hid, _ in current}

        change = CollectionChange()
        change.deletions = [i for i, (hid, _) in enumerate(self._last) if hid not in current_ids]
        for index, (hid, fingerprint) in enumerate(current):
            if hid not in previous:
                change.insertions.append(index)
            elif previous[hid] != fingerprint:
                change.modifications.append(index)
        self._last = current
        return change

    def _deliver(self, highlights: List[Highlight], initial: bool = False):
        if not self.active:
            return
        change = self._diff(highlights)
        if change.is_empty and not initial:
            return
        try:
            self.callback(highlights, change)
        except Exception as e:
            logger.error(f"Highlight listener for book {self.book_id} failed: {e}")


def _fingerprint(highlight: Highlight) -> tuple:
    return (highlight.updated_at, highlight.is_public, len(highlight.comments), highlight.bounds)


def _in_scope(highlight: Highlight, scope: Scope, user_id: Optional[str]) -> bool:
    is_own = user_id is not None and highlight.user_id == user_id
    if scope is Scope.MINE:
        return is_own
    return highlight.is_public or is_own


class HighlightStore:
    """In-memory store; subclasses persist the state after each write"""

    def __init__(self):
        self._lock = threading.RLock()
        self._books: Dict[str, Book] = {}
        self._highlights: Dict[str, Dict[str, Highlight]] = {}
        self._subscriptions: List[Subscription] = []

    # --- persistence hooks ---

    def _persist(self):
        """Write the current state; raise OSError on failure"""

    def _snapshot(self) -> Tuple[Dict[str, Book], Dict[str, Dict[str, Highlight]]]:
        books = copy.deepcopy(self._books)
        highlights = {bid: {hid: h.copy() for hid, h in items.items()}
                      for bid, items in self._highlights.items()}
        return books, highlights

    def _commit(self, snapshot):
        """Persist or roll back to the snapshot; callers notify after releasing the lock"""
        try:
            self._persist()
        except OSError as e:
            self._books, self._highlights = snapshot
            raise HighlightStoreError(f"Could not write highlight store: {e}") from e

    # --- books ---

    def save_book(self, book: Book) -> Book:
        with self._lock:
            snapshot = self._snapshot()
            self._books[book.id] = copy.deepcopy(book)
            self._highlights.setdefault(book.id, {})
            self._commit(snapshot)
        self._notify(book.id)
        logger.info(f"Saved book {book.id[:8]} ({book.title})")
        return book

    def get_book(self, book_id: str) -> Optional[Book]:
        with self._lock:
            book = self._books.get(book_id)
            return copy.deepcopy(book) if book else None

    def list_books(self) -> List[Book]:
        with self._lock:
            return [copy.deepcopy(b) for b in self._books.values()]

    # --- highlights ---

    def save_highlight(self, book_id: str, highlight: Highlight) -> Highlight:
        """
        Create or update a highlight keyed by its id

        An existing record keeps its text, bounds, owner, visibility and
        creation time; comments on the incoming highlight that the record
        lacks are appended.

        Raises:
            HighlightStoreError: the book is unknown or the write failed
        """
        with self._lock:
            if book_id not in self._books:
                raise HighlightStoreError(f"Unknown book: {book_id}")
            snapshot = self._snapshot()
            book_highlights = self._highlights.setdefault(book_id, {})

            existing = book_highlights.get(highlight.id)
            if existing is None:
                stored = highlight.copy()
            else:
                stored = existing.copy()
                known = {(c.text, c.user_id, c.created_at) for c in stored.comments}
                unseen = [c for c in highlight.comments if (c.text, c.user_id, c.created_at) not in known]
                if unseen:
                    stored.comments.extend(unseen)
                    stored.updated_at = utc_timestamp()
            book_highlights[stored.id] = stored
            self._commit(snapshot)
        self._notify(book_id)

        action = "Updated" if existing is not None else "Created"
        logger.info(f"{action} highlight {stored.id[:8]} on page {stored.page} of book {book_id[:8]}")
        return stored.copy()

    def get_highlight(self, book_id: str, highlight_id: str) -> Optional[Highlight]:
        with self._lock:
            highlight = self._highlights.get(book_id, {}).get(highlight_id)
            return highlight.copy() if highlight else None

    def delete_highlight(self, book_id: str, highlight_id: str) -> bool:
        with self._lock:
            if highlight_id not in self._highlights.get(book_id, {}):
                return False
            snapshot = self._snapshot()
            del self._highlights[book_id][highlight_id]
            self._commit(snapshot)
        self._notify(book_id)
        logger.info(f"Deleted highlight {highlight_id[:8]} from book {book_id[:8]}")
        return True

    def _visible_highlight(self, book_id: str, highlight_id: str, user_id: Optional[str]) -> Highlight:
        highlight = self._highlights.get(book_id, {}).get(highlight_id)
        if highlight is None or not _in_scope(highlight, Scope.ALL, user_id):
            raise HighlightStoreError(f"Unknown highlight {highlight_id} in book {book_id}")
        return highlight

    def append_comment(self, book_id: str, highlight_id: str, comment: Comment) -> Highlight:
        """
        Append a comment to a highlight the comment's author can see

        Raises:
            HighlightStoreError: the highlight is unknown, private to someone else,
                or the write failed
        """
        with self._lock:
            highlight = self._visible_highlight(book_id, highlight_id, comment.user_id)
            snapshot = self._snapshot()
            highlight.comments.append(comment)
            highlight.updated_at = utc_timestamp()
            self._commit(snapshot)
            updated = highlight.copy()
        self._notify(book_id)
        return updated

    def set_visibility(self, book_id: str, highlight_id: str, is_public: bool, user_id: Optional[str]) -> Highlight:
        """
        Make a highlight public or private; only its owner may

        Raises:
            HighlightStoreError: the highlight is unknown, not owned by user_id,
                or the write failed
        """
        with self._lock:
            highlight = self._visible_highlight(book_id, highlight_id, user_id)
            if not user_id or highlight.user_id != user_id:
                raise HighlightStoreError(f"Highlight {highlight_id} belongs to another user")
            snapshot = self._snapshot()
            highlight.set_public(is_public)
            self._commit(snapshot)
            updated = highlight.copy()
        self._notify(book_id)
        return updated

    def highlights(self, book_id: str, scope: Scope = Scope.ALL, user_id: Optional[str] = None) -> List[Highlight]:
        """
        Highlights of a book visible in a scope, newest update first

        Ties on update time fall back to creation time, then id, both descending.
        """
        with self._lock:
            selected = [h.copy() for h in self._highlights.get(book_id, {}).values()
                        if _in_scope(h, scope, user_id)]
        selected.sort(key=lambda h: (h.updated_at, h.created_at, h.id), reverse=True)
        return selected

    # --- listeners ---

    def listen(self, book_id: str, scope: Scope, user_id: Optional[str], callback: ListenCallback) -> Subscription:
        subscription = Subscription(self, book_id, scope, user_id, callback)
        with self._lock:
            self._subscriptions.append(subscription)
        subscription._deliver(self.highlights(book_id, scope, user_id), initial=True)
        return subscription

    def _remove_subscription(self, subscription: Subscription):
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    def _notify(self, book_id: str):
        with self._lock:
            targets = [s for s in self._subscriptions if s.book_id == book_id]
        for subscription in targets:
            subscription._deliver(self.highlights(book_id, subscription.scope, subscription.user_id))


class InMemoryHighlightStore(HighlightStore):
    """Store without a backing file"""


class JSONHighlightStore(HighlightStore):
    """Store persisted to a single JSON file, rewritten atomically on each change"""

    def __init__(self, path: Union[str, Path]):
        super().__init__()
        self.path = Path(path)
        self._load()

    def _load(self):
        if not self.path.exists():
            return
        try:
            data = json.loads(safe_read_text_file(self.path))
        except (OSError, ValueError) as e:
            raise HighlightStoreError(f"Could not read highlight store {self.path}: {e}") from e

        version = data.get("version", STORE_FORMAT_VERSION)
        if version != STORE_FORMAT_VERSION:
            raise HighlightStoreError(f"Unsupported store format version {version} in {self.path}")

        try:
            for book_id, entry in (data.get("books") or {}).items():
                self._books[book_id] = Book.from_dict(entry["book"])
                self._highlights[book_id] = {
                    hid: Highlight.from_dict(h) for hid, h in (entry.get("highlights") or {}).items()
                }
        except (KeyError, TypeError, ValueError) as e:
            raise HighlightStoreError(f"Malformed highlight store {self.path}: {e}") from e

        total = sum(len(items) for items in self._highlights.values())
        logger.info(f"Loaded {len(self._books)} books and {total} highlights from {self.path}")

    def _persist(self):
        data = {
            "version": STORE_FORMAT_VERSION,
            "books": {
                book_id: {
                    "book": book.to_dict(),
                    "highlights": {hid: h.to_dict() for hid, h in self._highlights.get(book_id, {}).items()},
                }
                for book_id, book in self._books.items()
            },
        }
        atomic_write_text(self.path, json.dumps(data, indent=2))
