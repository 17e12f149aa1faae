"""
PDF Document - Text search, selection and highlight drawing
This module uses PyMuPDF (fitz) to load documents from a path or byte
stream and to turn searches and selections into page-relative rectangles.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import fitz  # PyMuPDF

from ..errors import DocumentLoadError
from ..highlights.models import Bounds

logger = logging.getLogger(__name__)

# Grow hit rectangles slightly so boundary glyphs are extracted
GRAB_MARGIN = (-1, -1, 1, 1)


@dataclass
class TextSelection:
    """Text on one page plus one rectangle per line and their union"""

    page: int
    text: str
    line_rects: List[Bounds] = field(default_factory=list)

    @property
    def bounds(self) -> Bounds:
        if not self.line_rects:
            return Bounds(0.0, 0.0, 0.0, 0.0)
        union = self.line_rects[0]
        for rect in self.line_rects[1:]:
            union = union.union(rect)
        return union


def _normalize(text: str) -> str:
    return " ".join(text.lower().replace("-", "").split())


class PDFDocument:
    """Wrapper around an open fitz.Document"""

    def __init__(self, doc: fitz.Document, name: str = ""):
        self.doc = doc
        self.name = name

    @classmethod
    def open(cls, pdf_path: Union[str, Path]) -> "PDFDocument":
        """
        Open a PDF file

        Raises:
            DocumentLoadError: the file is missing or not a PDF
        """
        path = Path(pdf_path)
        try:
            return cls.from_bytes(path.read_bytes(), name=path.name)
        except OSError as e:
            raise DocumentLoadError(f"Cannot read PDF {path}: {e}") from e

    @classmethod
    def from_bytes(cls, data: bytes, name: str = "") -> "PDFDocument":
        """
        Open a PDF from an in-memory byte stream

        Raises:
            DocumentLoadError: PyMuPDF rejects the stream
        """
        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except Exception as e:
            raise DocumentLoadError(f"Cannot open PDF {name or '<stream>'}: {e}") from e
        if doc.page_count == 0:
            doc.close()
            raise DocumentLoadError(f"PDF {name or '<stream>'} has no pages")
        return cls(doc, name)

    def close(self):
        """Close the PDF document"""
        if self.doc is not None:
            self.doc.close()
            self.doc = None

    def __enter__(self) -> "PDFDocument":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @property
    def page_count(self) -> int:
        return self.doc.page_count

    @property
    def metadata(self) -> Dict[str, Optional[str]]:
        """Title and author from the document info, None when blank"""
        info = self.doc.metadata or {}
        return {
            "title": (info.get("title") or "").strip() or None,
            "author": (info.get("author") or "").strip() or None,
        }

    def _page(self, page: int) -> Optional[fitz.Page]:
        if page < 0 or page >= self.page_count:
            logger.warning(f"Invalid page number: {page}")
            return None
        return self.doc[page]

    def search_page(self, page: int, text: str) -> List[Bounds]:
        """All hit rectangles for text on one page (PyMuPDF search is case-insensitive)"""
        fitz_page = self._page(page)
        if fitz_page is None or not text.strip():
            return []
        return [Bounds.from_rect(rect) for rect in fitz_page.search_for(text)]

    def find_string(self, text: str, page: Optional[int] = None) -> Optional[TextSelection]:
        """
        First occurrence of text, on one page or anywhere in the document

        Hits of a multi-line match are returned as separate line rectangles.
        """
        if not text or not text.strip():
            return None
        pages = [page] if page is not None else range(self.page_count)
        for page_num in pages:
            fitz_page = self._page(page_num)
            if fitz_page is None:
                continue
            hits = fitz_page.search_for(text)
            if not hits:
                continue
            # search_for returns one rectangle per line of every occurrence;
            # take lines until the first occurrence's text is covered
            needle = _normalize(text)
            first = [hits[0]]
            covered = _normalize(fitz_page.get_textbox(hits[0] + GRAB_MARGIN))
            for rect in hits[1:]:
                if needle in covered:
                    break
                first.append(rect)
                covered = _normalize(f"{covered} {fitz_page.get_textbox(rect + GRAB_MARGIN)}")
            return TextSelection(page=page_num, text=text, line_rects=[Bounds.from_rect(r) for r in first])
        return None

    def selection_for_rect(self, page: int, clip: Union[Bounds, fitz.Rect]) -> Optional[TextSelection]:
        """
        Select the words whose boxes intersect a page rectangle

        Words are grouped per (block, line); each group becomes one line rectangle.
        """
        fitz_page = self._page(page)
        if fitz_page is None:
            return None
        clip_rect = clip.to_rect() if isinstance(clip, Bounds) else fitz.Rect(clip)

        # word format: (x0, y0, x1, y1, text, block_num, line_num, word_num)
        words = [w for w in fitz_page.get_text("words") if fitz.Rect(w[:4]).intersects(clip_rect)]
        if not words:
            return None

        line_groups: Dict[Tuple[int, int], List[tuple]] = defaultdict(list)
        for word in words:
            line_groups[(word[5], word[6])].append(word)

        line_rects = []
        line_texts = []
        for key in sorted(line_groups):
            line_words = sorted(line_groups[key], key=lambda w: w[7])
            x0 = min(w[0] for w in line_words)
            y0 = min(w[1] for w in line_words)
            x1 = max(w[2] for w in line_words)
            y1 = max(w[3] for w in line_words)
            line_rects.append(Bounds(x0, y0, x1 - x0, y1 - y0))
            line_texts.append(" ".join(w[4] for w in line_words))

        return TextSelection(page=page, text="\n".join(line_texts), line_rects=line_rects)

    def add_highlight_annotation(self, selection: TextSelection) -> bool:
        """Draw one highlight annotation with a quad per selected line"""
        fitz_page = self._page(selection.page)
        if fitz_page is None or not selection.line_rects:
            return False
        try:
            annot = fitz_page.add_highlight_annot([r.to_rect() for r in selection.line_rects])
            annot.set_colors(stroke=[1, 1, 0])  # Yellow
            annot.update()
            return True
        except (RuntimeError, ValueError) as e:
            logger.error(f"Error adding highlight on page {selection.page}: {e}")
            return False

    def render_thumbnail(self, page: int = 0, width: float = 400.0, height: float = 400.0 / 0.7) -> bytes:
        """PNG of a page scaled to fit inside width x height, aspect preserved"""
        fitz_page = self._page(page)
        if fitz_page is None:
            raise DocumentLoadError(f"Page {page} out of range for thumbnail")
        page_rect = fitz_page.rect
        zoom = min(width / page_rect.width, height / page_rect.height)
        pixmap = fitz_page.get_pixmap(matrix=fitz.Matrix(zoom, zoom), alpha=False)
        return pixmap.tobytes("png")

    def save(self, output_path: Union[str, Path]) -> bool:
        try:
            self.doc.save(str(output_path), garbage=4, deflate=True, clean=True)
            logger.info(f"PDF saved to {output_path}")
            return True
        except (RuntimeError, ValueError, OSError) as e:
            logger.error(f"Error saving PDF to {output_path}: {e}")
            return False
