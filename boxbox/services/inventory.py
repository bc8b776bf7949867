"""Inventory helpers shared by the box and item routes.

Box.item_count is denormalized. Every helper here only stages changes on the
session; the calling route commits once, so an item write and the count
adjustments it implies land in the same transaction.
"""
import base64
import binascii
from datetime import datetime
from typing import Optional, Tuple

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Query, Session

from boxbox.models.box import Box
from boxbox.models.item import Item

CURSOR_SEPARATOR = "__"


class InvalidCursor(ValueError):
    """Raised when a pagination cursor cannot be decoded."""


def encode_cursor(created_at: datetime, item_id: str) -> str:
    """Encode the (created_at, id) pair of the last row into an opaque token."""
    raw = f"{created_at.isoformat()}{CURSOR_SEPARATOR}{item_id}"
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii").rstrip("=")


def decode_cursor(cursor: str) -> Tuple[datetime, str]:
    """Inverse of encode_cursor."""
    try:
        padded = cursor + "=" * (-len(cursor) % 4)
        raw = base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")
        created_at, item_id = raw.split(CURSOR_SEPARATOR, 1)
        if not item_id:
            raise ValueError("missing id")
        return datetime.fromisoformat(created_at), item_id
    except (ValueError, UnicodeError, binascii.Error) as e:
        raise InvalidCursor(f"Invalid cursor: {cursor!r}") from e


def escape_like(term: str) -> str:
    """Make LIKE wildcards in a user search term match literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def apply_search(query: Query, model, search: Optional[str]) -> Query:
    """Case-insensitive substring filter over name and description."""
    if search and search.strip():
        pattern = f"%{escape_like(search.strip())}%"
        query = query.filter(
            or_(
                model.name.ilike(pattern, escape="\\"),
                model.description.ilike(pattern, escape="\\"),
            )
        )
    return query


def apply_cursor(query: Query, cursor: Optional[str]) -> Query:
    """Restrict to rows strictly after the cursor in (created_at, id) descending order."""
    if not cursor:
        return query
    created_at, item_id = decode_cursor(cursor)
    return query.filter(
        or_(
            Item.created_at < created_at,
            and_(Item.created_at == created_at, Item.id < item_id),
        )
    )


def clamp_page_size(limit: Optional[int], default: int, maximum: int) -> int:
    if limit is None:
        return default
    return min(max(limit, 1), maximum)


def adjust_item_count(db: Session, box_id: str, delta: int) -> None:
    """Stage an in-database increment/decrement of a box's item count."""
    db.query(Box).filter(Box.id == box_id).update(
        {Box.item_count: Box.item_count + delta},
        synchronize_session=False,
    )


def recount_boxes(db: Session) -> Tuple[int, int]:
    """Recompute every box's item count from the items table.

    Returns (boxes checked, boxes corrected). Does not commit.
    """
    counts = dict(
        db.query(Item.box_id, func.count(Item.id)).group_by(Item.box_id).all()
    )
    checked = corrected = 0
    for box in db.query(Box).all():
        checked += 1
        actual = counts.get(box.id, 0)
        if box.item_count != actual:
            box.item_count = actual
            corrected += 1
    return checked, corrected
