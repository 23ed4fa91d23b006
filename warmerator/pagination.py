from typing import NamedTuple

from .errors import UnknownCursorError
from .loggable import note
from .records import record_id


class Page(NamedTuple):
    items: list
    next_cursor: str | None
    has_more: bool
    total: int


def _start_index(records: list, cursor_id, strict: bool) -> int:
    if cursor_id is None:
        return 0
    for index, record in enumerate(records):
        if record_id(record) == cursor_id:
            return index + 1
    if strict:
        raise UnknownCursorError(cursor_id)
    note(f"Cursor {cursor_id!r} not found, starting from the first record")
    return 0


def paginate(records: list, cursor_id=None, limit: int = 500, strict: bool = False) -> Page:
    """Slice of ``records`` following the record whose uid is ``cursor_id``.

    An unknown cursor restarts from the first record unless ``strict`` is set,
    in which case UnknownCursorError is raised.
    """
    start = _start_index(records, cursor_id, strict)
    end = start + limit
    items = records[start:end]
    has_more = end < len(records)
    next_cursor = record_id(items[-1]) if has_more and items else None
    return Page(items, next_cursor, has_more, len(records))
