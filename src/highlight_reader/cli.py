#!/usr/bin/env python3
"""
Highlight Reader - Command Line Interface
Create, find, list and comment on PDF highlights kept in a local store
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import CONFIG, ReaderConfig
from .errors import HighlightReaderError
from .highlights.models import Bounds, identifier_for
from .pdf_processor.pdf_document import PDFDocument, TextSelection
from .reader.highlight_list import HighlightList
from .reader.reader_session import ReaderSession
from .session import Preferences, UserSession
from .store.highlight_store import Book, JSONHighlightStore, Scope

logger = logging.getLogger(__name__)


def _rect(values: List[float]) -> Bounds:
    return Bounds.from_rect(values).normalized()


def _open_book(store: JSONHighlightStore, pdf_file: str) -> Book:
    """Stored record of the PDF, created on first use"""
    book = Book.for_pdf(pdf_file)
    stored = store.get_book(book.id)
    if stored is not None:
        stored.contents_path = book.contents_path
        return stored
    return store.save_book(book)


def _describe(highlight, session: UserSession) -> str:
    b = highlight.bounds
    owner = "mine" if highlight.is_mine(session) else (highlight.user_id or "anonymous")
    visibility = "public" if highlight.is_public else "private"
    text = highlight.text.replace("\n", " ")
    if len(text) > 60:
        text = text[:57] + "..."
    return (f"{highlight.id}  page {highlight.page}  "
            f"[{b.origin_x:.1f}, {b.origin_y:.1f}, {b.width:.1f} x {b.height:.1f}]  "
            f"{visibility}, {owner}  \"{text}\"")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Highlight Reader CLI")
    parser.add_argument("--store", help="Path to the highlight store JSON file")
    parser.add_argument("--prefs", help="Path to the preferences JSON file")
    parser.add_argument("--user", help="User id of the person highlighting")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("id", help="Print the identifier of a (text, page) highlight")
    p.add_argument("text")
    p.add_argument("page", type=int)

    p = sub.add_parser("register", help="Store title, author and cover thumbnail of a PDF")
    p.add_argument("pdf_file")

    p = sub.add_parser("highlight", help="Highlight text on a page")
    p.add_argument("pdf_file")
    p.add_argument("--page", type=int, required=True, help="Zero-based page number")
    target = p.add_mutually_exclusive_group(required=True)
    target.add_argument("--rect", type=float, nargs=4, metavar=("X0", "Y0", "X1", "Y1"),
                        help="Select the words inside this rectangle")
    target.add_argument("--text", help="Highlight the first occurrence of this text")
    p.add_argument("--comment", help="Attach a first comment")

    p = sub.add_parser("find", help="Resolve a tapped rectangle to a stored highlight")
    p.add_argument("pdf_file")
    p.add_argument("--page", type=int, required=True)
    p.add_argument("--rect", type=float, nargs=4, required=True, metavar=("X0", "Y0", "X1", "Y1"))

    p = sub.add_parser("list", help="List highlights in the current scope")
    p.add_argument("pdf_file")

    p = sub.add_parser("comment", help="Append a comment to a highlight")
    p.add_argument("pdf_file")
    p.add_argument("highlight_id")
    p.add_argument("text")

    p = sub.add_parser("visibility", help="Make a highlight public or private")
    p.add_argument("pdf_file")
    p.add_argument("highlight_id")
    p.add_argument("visibility", choices=["public", "private"])

    p = sub.add_parser("scope", help="Show or change which highlights are listed")
    p.add_argument("value", nargs="?", choices=["mine", "all", "toggle"])

    p = sub.add_parser("privacy", help="Show or change the default visibility of new highlights")
    p.add_argument("value", nargs="?", choices=["on", "off"])

    p = sub.add_parser("export", help="Write a copy of the PDF with stored highlights drawn")
    p.add_argument("pdf_file")
    p.add_argument("output")

    return parser


def _cmd_register(reader: ReaderSession) -> int:
    if reader.book.thumbnail_path:
        print(f"Already registered: {reader.book.title} ({reader.book.thumbnail_path})")
        return 0
    if not reader.register_book_info():
        print("❌ Failed to register book")
        return 1
    print(f"✅ Registered {reader.book.title or reader.book.id}"
          f"{' by ' + reader.book.author if reader.book.author else ''}")
    print(f"   Thumbnail: {reader.book.thumbnail_path}")
    return 0


def _cmd_highlight(reader: ReaderSession, args) -> int:
    if args.rect:
        if args.comment:
            selection = reader.document.selection_for_rect(args.page, _rect(args.rect)) if reader.document else None
            highlight = reader.save_highlight_with_comment(
                selection.text, args.page, selection.bounds, args.comment) if selection else None
        else:
            highlight = reader.highlight_selection(args.page, _rect(args.rect))
    else:
        selection: Optional[TextSelection] = None
        if reader.document is not None:
            selection = reader.document.find_string(args.text, page=args.page)
        if selection is None:
            print(f"Text not found on page {args.page}: {args.text}")
            return 1
        if args.comment:
            highlight = reader.save_highlight_with_comment(args.text, args.page, selection.bounds, args.comment)
        else:
            highlight = reader.save_highlight(args.text, args.page, selection.bounds)

    if highlight is None:
        print("❌ No highlight saved")
        return 1
    print(f"✅ {_describe(highlight, reader.session)}")
    return 0


def _cmd_find(reader: ReaderSession, args) -> int:
    reader.page_changed(args.page)
    highlight = reader.tapped_highlight(_rect(args.rect))
    if highlight is None:
        print("No highlight at that position")
        return 1
    print(_describe(highlight, reader.session))
    for comment in highlight.comments:
        print(f"    - {comment.text}")
    return 0


def _cmd_list(highlight_list: HighlightList) -> int:
    scope_name = "all public" if highlight_list.show_others_highlight_list else "my"
    if not highlight_list.load_highlights():
        print("Listing highlights needs --user")
        return 1
    print(f"{highlight_list.highlights_count} highlights ({scope_name})")
    for index in range(highlight_list.highlights_count):
        print(f"  {_describe(highlight_list.highlight_at(index), highlight_list.session)}")
        comments = highlight_list.comment_text(index)
        if comments:
            for line in comments.splitlines():
                print(f"      > {line}")
    highlight_list.close()
    return 0


def _cmd_export(store: JSONHighlightStore, book: Book, session: UserSession, args) -> int:
    highlights = store.highlights(book.id, Scope.ALL, session.user_id)
    with PDFDocument.open(args.pdf_file) as document:
        drawn = 0
        for highlight in highlights:
            selection = document.find_string(highlight.text, page=highlight.page)
            if selection is None:
                # Fall back to the stored bounding box
                selection = TextSelection(highlight.page, highlight.text, [highlight.bounds])
            if document.add_highlight_annotation(selection):
                drawn += 1
        if drawn == 0:
            print("No highlights to export")
            return 1
        if not document.save(args.output):
            return 1
    print(f"✅ Exported {drawn} highlights to {args.output}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Command line interface main function"""
    args = build_parser().parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format=CONFIG.log_format)

    if args.command == "id":
        print(identifier_for(args.text, args.page))
        return 0

    config = ReaderConfig.from_env()
    store_path = Path(args.store) if args.store else config.store_path
    prefs_path = Path(args.prefs) if args.prefs else config.preferences_path
    preferences = Preferences(prefs_path)

    if args.command == "scope":
        if args.value == "toggle":
            preferences.show_others_highlight_list = not preferences.show_others_highlight_list
        elif args.value:
            preferences.show_others_highlight_list = args.value == "all"
        print("all" if preferences.show_others_highlight_list else "mine")
        return 0

    if args.command == "privacy":
        if args.value:
            preferences.is_private_activity = args.value == "on"
        print("on" if preferences.is_private_activity else "off")
        return 0

    if not Path(args.pdf_file).exists():
        print(f"Error: PDF file does not exist: {args.pdf_file}")
        return 1

    session = UserSession(args.user)
    try:
        store = JSONHighlightStore(store_path)
        book = _open_book(store, args.pdf_file)

        if args.command == "list":
            return _cmd_list(HighlightList(book, store, session, preferences))

        if args.command == "comment":
            highlight = store.get_highlight(book.id, args.highlight_id)
            if highlight is None or not (highlight.is_public or highlight.is_mine(session)):
                print(f"Unknown highlight: {args.highlight_id}")
                return 1
            reader = ReaderSession(book, store, session, preferences, thumbnail_dir=store_path.parent / CONFIG.thumbnail_dirname)
            if reader.add_comment(highlight, args.text) is None:
                return 1
            print(f"✅ Comment added to {args.highlight_id}")
            return 0

        if args.command == "visibility":
            updated = store.set_visibility(book.id, args.highlight_id, args.visibility == "public", session.user_id)
            print(f"✅ {_describe(updated, session)}")
            return 0

        if args.command == "export":
            return _cmd_export(store, book, session, args)

        reader = ReaderSession(book, store, session, preferences,
                               thumbnail_dir=store_path.parent / CONFIG.thumbnail_dirname)
        try:
            if args.command == "register":
                return _cmd_register(reader)
            if args.command == "highlight":
                return _cmd_highlight(reader, args)
            if args.command == "find":
                return _cmd_find(reader, args)
        finally:
            reader.close()
    except HighlightReaderError as e:
        print(f"Error: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1

    return 1


if __name__ == "__main__":
    sys.exit(main())
