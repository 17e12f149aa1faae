"""
Highlight Matcher - Resolve a tap or re-selection to a stored highlight

Multi-line selections are drawn as one rectangle per line but stored with a
single bounding box, so a tap on one line has to resolve back to the parent
box. Exact matches are checked first so two overlapping highlights can still
be told apart.
"""

import logging
from typing import Iterable, Optional, Sequence, Union

import fitz  # PyMuPDF

from .models import Bounds, Highlight

logger = logging.getLogger(__name__)


def _as_bounds(query: Union[Bounds, fitz.Rect, Sequence[float]]) -> Bounds:
    if isinstance(query, Bounds):
        return query
    return Bounds.from_rect(query)


def is_exact_match(bounds: Bounds, query: Bounds) -> bool:
    return (
        bounds.origin_x == query.origin_x
        and bounds.origin_y == query.origin_y
        and bounds.width == query.width
        and bounds.height == query.height
    )


def is_containment_match(bounds: Bounds, query: Bounds) -> bool:
    return bounds.contains(query)


def find_highlight(regions: Iterable[Highlight], query: Union[Bounds, fitz.Rect, Sequence[float]]) -> Optional[Highlight]:
    """
    Find the highlight identified by a query rectangle.

    Exact coordinate equality wins over containment regardless of order.
    Within a phase the first region in input order wins; there is no
    smallest-area preference among several containing regions.

    Args:
        regions: Candidate highlights in caller-defined order
        query: Bounds of the tap or selection

    Returns:
        Matching highlight or None when the query is a new region
    """
    candidates = list(regions)
    target = _as_bounds(query)

    for region in candidates:
        if is_exact_match(region.bounds, target):
            logger.debug(f"Exact match {region.id[:8]} on page {region.page}")
            return region

    for region in candidates:
        if is_containment_match(region.bounds, target):
            logger.debug(f"Containment match {region.id[:8]} on page {region.page}")
            return region

    return None
