from .models import Bounds, Comment, Highlight, identifier_for
from .matcher import find_highlight, is_containment_match, is_exact_match

__all__ = [
    "Bounds",
    "Comment",
    "Highlight",
    "identifier_for",
    "find_highlight",
    "is_containment_match",
    "is_exact_match",
]
