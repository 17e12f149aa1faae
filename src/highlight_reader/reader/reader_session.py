"""
Reader Session - Page-level highlight workflow for one open book

Drives what a reader screen needs without any UI toolkit: loading the PDF,
registering the book's cover and metadata, keeping the visible highlights of
the current page, resolving taps and saving new highlights.

Store and document failures follow a log-and-continue policy: they are
logged, passed to the optional on_error callback and never retried.
"""

import logging
from pathlib import Path
from typing import Callable, List, Optional, Set, Tuple, Union

from ..config import CONFIG
from ..errors import DocumentLoadError, HighlightReaderError, HighlightStoreError
from ..highlights.models import Bounds, Comment, Highlight
from ..pdf_processor.pdf_document import PDFDocument, TextSelection
from ..session import Preferences, UserSession
from ..store.highlight_store import Book, HighlightStore, Scope
from ..utils.file_utils import atomic_write_bytes, clean_filename
from .visible_page import VisiblePageSet

logger = logging.getLogger(__name__)

ErrorCallback = Callable[[HighlightReaderError], None]


class ReaderSession:
    """State of one book open in the reader"""

    def __init__(self, book: Book, store: HighlightStore, session: UserSession,
                 preferences: Preferences, document: Optional[PDFDocument] = None,
                 on_error: Optional[ErrorCallback] = None,
                 thumbnail_dir: Optional[Union[str, Path]] = None):
        self.book = book
        self.store = store
        self.session = session
        self.preferences = preferences
        self.on_error = on_error
        self.thumbnail_dir = Path(thumbnail_dir) if thumbnail_dir else CONFIG.home / CONFIG.thumbnail_dirname
        self.visible = VisiblePageSet()
        self._document = document
        self._document_loaded = document is not None
        self._drawn: Set[Tuple[int, str]] = set()

    def _report(self, error: HighlightReaderError):
        logger.error(f"{type(error).__name__}: {error}")
        if self.on_error is not None:
            self.on_error(error)

    @property
    def document(self) -> Optional[PDFDocument]:
        """The book's PDF, loaded on first access; None if it cannot be opened"""
        if not self._document_loaded:
            self._document_loaded = True
            if not self.book.contents_path:
                logger.warning(f"Book {self.book.id[:8]} has no contents")
                return None
            try:
                self._document = PDFDocument.open(self.book.contents_path)
            except DocumentLoadError as e:
                self._report(e)
        return self._document

    def close(self):
        if self._document is not None:
            self._document.close()
            self._document = None

    def register_book_info(self) -> bool:
        """
        Fill title, author and cover thumbnail the first time a book is opened

        Returns:
            True if the book record was updated
        """
        # A registered book already has a thumbnail
        if self.book.thumbnail_path:
            return False
        document = self.document
        if document is None:
            return False

        metadata = document.metadata
        self.book.title = metadata["title"] or self.book.title
        self.book.author = metadata["author"] or self.book.author
        try:
            png = document.render_thumbnail(0, CONFIG.thumbnail_width, CONFIG.thumbnail_height)
            thumbnail_path = self.thumbnail_dir / f"{clean_filename(self.book.id)}.png"
            atomic_write_bytes(thumbnail_path, png)
        except DocumentLoadError as e:
            self._report(e)
            return False
        except OSError as e:
            self._report(HighlightStoreError(f"Could not write thumbnail: {e}"))
            return False

        self.book.thumbnail_path = str(thumbnail_path)
        self.book.is_public = False
        try:
            self.store.save_book(self.book)
        except HighlightStoreError as e:
            self._report(e)
            return False
        return True

    def _draw(self, highlight: Highlight, selection: Optional[TextSelection] = None):
        key = (highlight.page, highlight.id)
        document = self.document
        if key in self._drawn or document is None:
            return
        if selection is None:
            selection = document.find_string(highlight.text, page=highlight.page)
        if selection is not None and document.add_highlight_annotation(selection):
            self._drawn.add(key)

    def page_changed(self, page: int) -> List[Highlight]:
        """
        Rebuild the visible set for a newly shown page

        Always a full clear-and-repopulate from the store, so repeating the
        call for the same page gives the same result.
        """
        self.visible.clear()
        highlights = self.store.highlights(self.book.id, Scope.ALL, self.session.user_id)
        self.visible.replace(page, highlights)
        for highlight in self.visible:
            self._draw(highlight)
        logger.debug(f"Page {page}: {len(self.visible)} visible highlights")
        return list(self.visible)

    def tapped_highlight(self, bounds: Bounds) -> Optional[Highlight]:
        return self.visible.find(bounds)

    def new_highlight(self, text: str, page: int, bounds: Bounds) -> Highlight:
        return Highlight.new(text, page, bounds, session=self.session, preferences=self.preferences)

    def add_visible_highlight(self, highlight: Highlight):
        self.visible.add(highlight)

    def _persist(self, highlight: Highlight) -> Optional[Highlight]:
        try:
            stored = self.store.save_highlight(self.book.id, highlight)
        except HighlightStoreError as e:
            self._report(e)
            return None
        # A duplicate save returns the existing record, which may be private to someone else
        if stored.is_public or stored.is_mine(self.session):
            self.add_visible_highlight(stored)
        return stored

    def save_highlight(self, text: str, page: int, bounds: Bounds) -> Optional[Highlight]:
        """
        Create and persist a highlight for a selection

        Returns:
            The stored highlight, or None when the store write failed
        """
        return self._persist(self.new_highlight(text, page, bounds))

    def save_highlight_with_comment(self, text: str, page: int, bounds: Bounds, comment: str) -> Optional[Highlight]:
        """Persist a new highlight together with its first comment"""
        highlight = self.new_highlight(text, page, bounds)
        highlight.add_comment(comment, self.session)
        return self._persist(highlight)

    def highlight_selection(self, page: int, clip: Bounds) -> Optional[Highlight]:
        """Select the text under clip, draw it and save it as a highlight"""
        document = self.document
        if document is None:
            return None
        selection = document.selection_for_rect(page, clip)
        if selection is None:
            logger.warning(f"No text under {clip} on page {page}")
            return None
        highlight = self.save_highlight(selection.text, page, selection.bounds)
        if highlight is not None:
            self._draw(highlight, selection)
        return highlight

    def add_comment(self, highlight: Highlight, text: str) -> Optional[Highlight]:
        comment = Comment(text=text, user_id=self.session.user_id)
        try:
            updated = self.store.append_comment(self.book.id, highlight.id, comment)
        except HighlightStoreError as e:
            self._report(e)
            return None
        if updated in self.visible:
            self.visible.add(updated)
        return updated
