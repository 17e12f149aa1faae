"""
Unit tests for resolving taps and re-selections to stored highlights.

Covers the exact-then-containment lookup in highlights/matcher.py, including
its first-match ordering.
"""

import unittest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

import fitz

from highlight_reader.highlights.matcher import find_highlight, is_containment_match, is_exact_match
from highlight_reader.highlights.models import Bounds, Highlight, identifier_for


def _highlight(x, y, w, h, text='Test content', page=0):
    """Helper to create a stored highlight with given bounds."""
    return Highlight(id=identifier_for(f"{text}@{x},{y}", page), text=text, page=page,
                     bounds=Bounds(x, y, w, h))


class TestFindHighlight(unittest.TestCase):
    """Test suite for the two-phase lookup."""

    def test_exact_match_beats_containing_region_listed_first(self):
        query = Bounds(10, 10, 20, 10)
        exact = _highlight(10, 10, 20, 10, text='exact')
        container = _highlight(0, 0, 100, 50, text='container')

        self.assertIs(find_highlight([container, exact], query), exact)

    def test_exact_match_beats_containing_region_listed_second(self):
        query = Bounds(10, 10, 20, 10)
        exact = _highlight(10, 10, 20, 10, text='exact')
        container = _highlight(0, 0, 100, 50, text='container')

        self.assertIs(find_highlight([exact, container], query), exact)

    def test_containment_fallback(self):
        region = _highlight(0, 0, 100, 50)
        self.assertIs(find_highlight([region], Bounds(10, 10, 20, 10)), region)

    def test_no_match(self):
        region = _highlight(0, 0, 10, 10)
        self.assertIsNone(find_highlight([region], Bounds(50, 50, 5, 5)))

    def test_identical_bounds_resolved_by_exact_phase(self):
        region = _highlight(0, 0, 10, 10)
        query = Bounds(0, 0, 10, 10)

        self.assertTrue(is_exact_match(region.bounds, query))
        self.assertTrue(is_containment_match(region.bounds, query))
        self.assertIs(find_highlight([region], query), region)

    def test_empty_collection(self):
        self.assertIsNone(find_highlight([], Bounds(0, 0, 1, 1)))

    def test_first_exact_match_wins(self):
        first = _highlight(5, 5, 10, 10, text='first')
        second = _highlight(5, 5, 10, 10, text='second')

        self.assertIs(find_highlight([first, second], Bounds(5, 5, 10, 10)), first)
        self.assertIs(find_highlight([second, first], Bounds(5, 5, 10, 10)), second)

    def test_first_containing_region_wins_without_area_minimization(self):
        """A large box listed first wins over a tighter one listed later."""
        large = _highlight(0, 0, 500, 500, text='large')
        tight = _highlight(8, 8, 30, 15, text='tight')
        query = Bounds(10, 10, 20, 10)

        self.assertIs(find_highlight([large, tight], query), large)
        self.assertIs(find_highlight([tight, large], query), tight)

    def test_single_line_tap_resolves_to_multi_line_parent(self):
        """Tapping the second line of a three-line highlight finds the bounding box."""
        parent = _highlight(50, 100, 300, 48, text='three lines')
        second_line = Bounds(50, 116, 300, 16)

        self.assertIs(find_highlight([parent], second_line), parent)

    def test_taller_query_not_contained(self):
        region = _highlight(0, 0, 100, 10)
        self.assertIsNone(find_highlight([region], Bounds(10, 0, 20, 11)))

    def test_wider_query_not_contained(self):
        region = _highlight(0, 0, 10, 100)
        self.assertIsNone(find_highlight([region], Bounds(0, 10, 11, 20)))

    def test_query_left_of_region_not_contained(self):
        region = _highlight(10, 10, 100, 100)
        self.assertIsNone(find_highlight([region], Bounds(9.5, 20, 5, 5)))

    def test_query_origin_on_far_edge_is_contained(self):
        """Far edges are compared with the query origin only."""
        region = _highlight(0, 0, 100, 50)
        query = Bounds(100, 50, 20, 10)

        self.assertTrue(is_containment_match(region.bounds, query))
        self.assertIs(find_highlight([region], query), region)

    def test_query_origin_past_far_edge_not_contained(self):
        region = _highlight(0, 0, 100, 50)
        self.assertIsNone(find_highlight([region], Bounds(100.5, 10, 1, 1)))

    def test_accepts_fitz_rect_query(self):
        region = _highlight(0, 0, 100, 50)
        self.assertIs(find_highlight([region], fitz.Rect(10, 10, 30, 20)), region)

    def test_accepts_generator_of_regions(self):
        """Both phases see every region even when given a one-shot iterator."""
        container = _highlight(0, 0, 100, 50, text='container')
        exact = _highlight(10, 10, 20, 10, text='exact')

        result = find_highlight((h for h in [container, exact]), Bounds(10, 10, 20, 10))

        self.assertIs(result, exact)

    def test_other_pages_are_caller_responsibility(self):
        """The matcher compares rectangles only; page filtering happens upstream."""
        region = _highlight(0, 0, 100, 50, page=3)
        self.assertIs(find_highlight([region], Bounds(10, 10, 5, 5)), region)

    def test_inputs_not_mutated(self):
        regions = [_highlight(0, 0, 100, 50), _highlight(10, 10, 20, 10)]
        before = [h.to_dict() for h in regions]

        find_highlight(regions, Bounds(10, 10, 20, 10))

        self.assertEqual([h.to_dict() for h in regions], before)


if __name__ == '__main__':
    unittest.main()
