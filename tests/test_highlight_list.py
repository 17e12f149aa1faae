"""
Tests for the highlight list: scope switching, listener reuse and comment text.
"""

import pytest

from highlight_reader.highlights.models import Bounds, Comment, Highlight
from highlight_reader.reader.highlight_list import HighlightList
from highlight_reader.session import Preferences, UserSession
from highlight_reader.store.highlight_store import Book, InMemoryHighlightStore, Scope

BOOK = Book(id="book-1", title="Sample Book")


def _save(store, text, user, public=True, updated="2024-01-01T00:00:00+00:00"):
    highlight = Highlight.new(text, 0, Bounds(0, 0, 10, 10), session=UserSession(user))
    highlight.is_public = public
    highlight.updated_at = updated
    return store.save_highlight(BOOK.id, highlight)


@pytest.fixture
def store():
    store = InMemoryHighlightStore()
    store.save_book(BOOK)
    _save(store, "alice public", "alice", updated="2024-01-01T00:00:00+00:00")
    _save(store, "alice private", "alice", public=False, updated="2024-02-01T00:00:00+00:00")
    _save(store, "bob public", "bob", updated="2024-03-01T00:00:00+00:00")
    _save(store, "bob private", "bob", public=False, updated="2024-04-01T00:00:00+00:00")
    return store


@pytest.fixture
def highlight_list(store):
    highlight_list = HighlightList(BOOK, store, UserSession("alice"), Preferences())
    yield highlight_list
    highlight_list.close()


def test_default_scope_is_mine(highlight_list):
    assert highlight_list.scope == Scope.MINE
    assert highlight_list.load_highlights() is True
    assert [h.text for h in highlight_list.highlights] == ["alice private", "alice public"]


def test_switch_to_all_public(highlight_list):
    highlight_list.switch_highlight_list_range()
    highlight_list.load_highlights()

    assert highlight_list.scope == Scope.ALL
    assert [h.text for h in highlight_list.highlights] == ["bob public", "alice private", "alice public"]
    assert highlight_list.highlights_count == 3


def test_switch_back_keeps_both_scopes(highlight_list):
    highlight_list.load_highlights()
    highlight_list.switch_highlight_list_range()
    highlight_list.load_highlights()
    highlight_list.switch_highlight_list_range()

    assert highlight_list.highlights_count == 2
    assert set(highlight_list._subscriptions) == {Scope.MINE, Scope.ALL}


def test_reloading_scope_reuses_listener(highlight_list, store):
    first_calls = []
    second_calls = []

    highlight_list.load_highlights(lambda items, change: first_calls.append(len(items)))
    subscription = highlight_list._subscriptions[Scope.MINE]
    highlight_list.load_highlights(lambda items, change: second_calls.append((len(items), change.is_empty)))

    assert highlight_list._subscriptions[Scope.MINE] is subscription
    assert first_calls == [2]
    assert second_calls == [(2, True)]

    _save(store, "alice new", "alice", updated="2030-01-01T00:00:00+00:00")

    assert first_calls == [2]
    assert second_calls[-1] == (3, False)
    assert highlight_list.highlight_at(0).text == "alice new"


def test_anonymous_user_cannot_load(store):
    highlight_list = HighlightList(BOOK, store, UserSession(), Preferences())

    assert highlight_list.load_highlights() is False
    assert highlight_list.highlights == []


def test_highlight_at_out_of_range(highlight_list):
    highlight_list.load_highlights()

    assert highlight_list.highlight_at(-1) is None
    assert highlight_list.highlight_at(5) is None


def test_comment_text(highlight_list, store):
    newest = _save(store, "alice commented", "alice", updated="2031-01-01T00:00:00+00:00")
    store.append_comment(BOOK.id, newest.id, Comment("first", "alice"))
    store.append_comment(BOOK.id, newest.id, Comment("second", "bob"))
    highlight_list.load_highlights()

    assert highlight_list.highlight_at(0).text == "alice commented"
    assert highlight_list.comment_text(0) == "first\nsecond\n"
    assert highlight_list.comment_text(1) is None
    assert highlight_list.comment_text(99) is None


def test_close_cancels_listeners(highlight_list, store):
    calls = []
    highlight_list.load_highlights(lambda items, change: calls.append(items))
    highlight_list.close()

    _save(store, "after close", "alice")

    assert len(calls) == 1


def test_switch_persists_preference(store, tmp_path):
    prefs_path = tmp_path / "preferences.json"
    highlight_list = HighlightList(BOOK, store, UserSession("alice"), Preferences(prefs_path))

    highlight_list.switch_highlight_list_range()

    assert Preferences(prefs_path).show_others_highlight_list is True
