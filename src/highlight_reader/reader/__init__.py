from .highlight_list import HighlightList
from .reader_session import ReaderSession
from .visible_page import VisiblePageSet

__all__ = ["HighlightList", "ReaderSession", "VisiblePageSet"]
