"""
Exceptions raised by the document and store collaborators.

Matching and identifier derivation never raise; everything that touches a
file or a PDF stream can.
"""


class HighlightReaderError(Exception):
    """Base class for all highlight reader errors"""


class DocumentLoadError(HighlightReaderError):
    """A PDF could not be opened from a path or byte stream"""


class HighlightStoreError(HighlightReaderError):
    """Reading or writing the highlight store failed"""
