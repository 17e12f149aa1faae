"""
Highlight data model

A highlight is a rectangle of selected text on one page plus its visibility
and comment thread. Records are keyed by a digest of (text, page) so that
the same selection made on two devices collapses into one record on sync.
"""

import hashlib
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Union

import fitz  # PyMuPDF


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def identifier_for(text: str, page: int) -> str:
    """
    Derive the record id of a highlight from its content.

    Args:
        text: Selected text, may be empty
        page: Zero-based page index

    Returns:
        40 character lowercase SHA-1 hex digest of text followed by the page number
    """
    return hashlib.sha1(f"{text}{page}".encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned page rectangle: origin plus width and height, in PDF points."""

    origin_x: float
    origin_y: float
    width: float
    height: float

    @property
    def max_x(self) -> float:
        return self.origin_x + self.width

    @property
    def max_y(self) -> float:
        return self.origin_y + self.height

    @classmethod
    def from_rect(cls, rect: Union[fitz.Rect, Sequence[float]]) -> "Bounds":
        """Build bounds from a fitz.Rect or an (x0, y0, x1, y1) sequence"""
        x0, y0, x1, y1 = (float(v) for v in tuple(rect)[:4])
        return cls(x0, y0, x1 - x0, y1 - y0)

    def to_rect(self) -> fitz.Rect:
        return fitz.Rect(self.origin_x, self.origin_y, self.max_x, self.max_y)

    def normalized(self) -> "Bounds":
        """Same rectangle with non-negative width and height"""
        x, width = self.origin_x, self.width
        y, height = self.origin_y, self.height
        if width < 0:
            x, width = x + width, -width
        if height < 0:
            y, height = y + height, -height
        return Bounds(x, y, width, height)

    def union(self, other: "Bounds") -> "Bounds":
        x0 = min(self.origin_x, other.origin_x)
        y0 = min(self.origin_y, other.origin_y)
        x1 = max(self.max_x, other.max_x)
        y1 = max(self.max_y, other.max_y)
        return Bounds(x0, y0, x1 - x0, y1 - y0)

    def contains(self, other: "Bounds") -> bool:
        """
        Containment test used for re-selection and taps.

        The far edges are checked against the other rectangle's origin, and
        the size checks make sure this rectangle is at least as large.
        """
        return (
            self.origin_x <= other.origin_x
            and self.origin_x + self.width >= other.origin_x
            and self.origin_y <= other.origin_y
            and self.origin_y + self.height >= other.origin_y
            and self.width >= other.width
            and self.height >= other.height
        )

    def to_dict(self) -> Dict[str, float]:
        return {
            "origin_x": self.origin_x,
            "origin_y": self.origin_y,
            "width": self.width,
            "height": self.height,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Bounds":
        return cls(
            float(data.get("origin_x", 0.0)),
            float(data.get("origin_y", 0.0)),
            float(data.get("width", 0.0)),
            float(data.get("height", 0.0)),
        )


@dataclass
class Comment:
    """Free-text remark attached to a highlight"""

    text: str
    user_id: Optional[str] = None
    created_at: str = field(default_factory=utc_timestamp)

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "user_id": self.user_id, "created_at": self.created_at}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Comment":
        return cls(
            text=data.get("text") or "",
            user_id=data.get("user_id"),
            created_at=data.get("created_at") or utc_timestamp(),
        )


@dataclass(eq=False)
class Highlight:
    """One highlighted text region on one page"""

    id: str
    text: str
    page: int
    bounds: Bounds
    user_id: Optional[str] = None
    is_public: bool = True
    comments: List[Comment] = field(default_factory=list)
    created_at: str = field(default_factory=utc_timestamp)
    updated_at: str = field(default_factory=utc_timestamp)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Highlight):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @classmethod
    def new(cls, text: str, page: int, bounds: Bounds, session=None, preferences=None) -> "Highlight":
        """
        Construct a highlight for a fresh selection.

        Args:
            text: Selected text
            page: Zero-based page index
            bounds: Selection bounds; negative sizes are normalized
            session: UserSession of the author, None for anonymous use
            preferences: Preferences deciding the default visibility

        Returns:
            New, not yet persisted, highlight
        """
        page = int(page)
        user_id = session.user_id if session is not None else None
        # Private needs an owner to see it; anonymous highlights stay public
        is_private = bool(preferences.is_private_activity) if preferences is not None and user_id else False
        return cls(
            id=identifier_for(text, page),
            text=text,
            page=page,
            bounds=bounds.normalized(),
            user_id=user_id,
            is_public=not is_private,
        )

    def is_mine(self, session) -> bool:
        if session is None or not self.user_id or not session.user_id:
            return False
        return self.user_id == session.user_id

    def add_comment(self, text: str, session=None) -> Comment:
        comment = Comment(text=text, user_id=session.user_id if session is not None else None)
        self.comments.append(comment)
        self.updated_at = utc_timestamp()
        return comment

    def set_public(self, is_public: bool):
        self.is_public = bool(is_public)
        self.updated_at = utc_timestamp()

    def copy(self) -> "Highlight":
        return replace(self, comments=list(self.comments))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "page": self.page,
            "bounds": self.bounds.to_dict(),
            "user_id": self.user_id,
            "is_public": self.is_public,
            "comments": [c.to_dict() for c in self.comments],
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Highlight":
        text = data.get("text") or ""
        page = int(data.get("page", 0))
        now = utc_timestamp()
        return cls(
            id=data.get("id") or identifier_for(text, page),
            text=text,
            page=page,
            bounds=Bounds.from_dict(data.get("bounds") or {}),
            user_id=data.get("user_id"),
            is_public=bool(data.get("is_public", True)),
            comments=[Comment.from_dict(c) for c in data.get("comments") or []],
            created_at=data.get("created_at") or now,
            updated_at=data.get("updated_at") or now,
        )
