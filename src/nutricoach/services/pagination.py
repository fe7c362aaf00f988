"""Offset cursor pagination shared by list endpoints."""

from collections.abc import Sequence
from typing import TypeVar

from nutricoach.errors import BadRequestError

T = TypeVar("T")


def parse_cursor(cursor: str | None) -> int:
    """Decode an offset cursor; None starts from the beginning."""
    if cursor is None or cursor == "":
        return 0
    if not cursor.isdigit():
        raise BadRequestError("Invalid cursor")
    return int(cursor)


def paginate(rows: Sequence[T], limit: int, offset: int) -> tuple[list[T], str | None]:
    """Trim a limit + 1 fetch to a page and compute the next cursor."""
    items = list(rows)
    if len(items) > limit:
        return items[:limit], str(offset + limit)
    return items, None
