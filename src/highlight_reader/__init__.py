"""
Highlight Reader

Create, match and share text highlights on PDF pages. Highlights are keyed
by a content-derived identifier so independent devices converge on one record.
"""

__version__ = "1.0.0"
__license__ = "GPL-3.0-or-later"

# Package metadata
__all__ = [
    "__version__",
    "__license__",
]
