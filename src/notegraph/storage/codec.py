"""
Record Codec: text form of a single note

A record is a header of key/value line pairs, a blank line, then the body:

    top level
    id
    12
    alternative
    reading-list
    create
    2024-01-01T09:30:00+01:00
    update
    2024-01-03T18:00:00+01:00
    parent
    3
    previous
    7
    title
    Books to read

    First paragraph

    Second paragraph

'top level' is a marker without a value line. A body whose first line is
'image' holds a single asset path instead of paragraphs:

    id
    13
    create
    2024-01-02T10:00:00+01:00

    image
    img/cat.png
"""

import re
from datetime import datetime
from typing import Dict, List, Optional, Union

from pydantic import ValidationError

from ..core.errors import FormatError
from ..models.note import IMAGE_MARKER, ConnectedNote, ImageContent, Note, TextContent

KEY_ID = "id"
KEY_ALTERNATIVE = "alternative"
KEY_CREATE = "create"
KEY_UPDATE = "update"
KEY_TITLE = "title"
KEY_PARENT = "parent"
KEY_PREVIOUS = "previous"
MARKER_TOP_LEVEL = "top level"

VALUE_KEYS = {KEY_ID, KEY_ALTERNATIVE, KEY_CREATE, KEY_UPDATE, KEY_TITLE, KEY_PARENT, KEY_PREVIOUS}

_DIGITS_RE = re.compile(r"[0-9]+")


def _split_lines(text: str) -> List[str]:
    lines = [line[:-1] if line.endswith("\r") else line for line in text.split("\n")]
    # A final newline does not open another line
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def _is_blank(line: str) -> bool:
    return not line.strip()


def _parse_int(value: str, key: str, source: Optional[str], line: Optional[int]) -> int:
    value = value.strip()
    if not _DIGITS_RE.fullmatch(value):
        raise FormatError(f"'{key}' expects an integer, got {value!r}", source, line)
    number = int(value)
    if number <= 0:
        raise FormatError(f"'{key}' must be positive, got {number}", source, line)
    return number


def _parse_timestamp(value: str, key: str, source: Optional[str], line: Optional[int]) -> datetime:
    value = value.strip()
    try:
        stamp = datetime.fromisoformat(value)
    except ValueError:
        raise FormatError(f"'{key}' expects an RFC 3339 timestamp, got {value!r}", source, line) from None
    if stamp.tzinfo is None or stamp.utcoffset() is None:
        raise FormatError(f"'{key}' timestamp {value!r} has no UTC offset", source, line)
    return stamp


def format_timestamp(stamp: datetime) -> str:
    return stamp.isoformat()


def decode_record(text: str, source: Optional[str] = None) -> ConnectedNote:
    """Parses one record into a note plus its pending references.

    Raises FormatError on any malformed header or body.
    """
    lines = _split_lines(text)
    single: Dict[str, str] = {}
    updates: List[datetime] = []
    previous: List[int] = []
    top_level = False

    i = 0
    while i < len(lines):
        key = lines[i].strip()
        key_line = i + 1
        i += 1
        if not key:
            break  # end of header

        if key == MARKER_TOP_LEVEL:
            top_level = True
            continue
        if key not in VALUE_KEYS:
            raise FormatError(f"unknown header key {key!r}", source, key_line)
        if i >= len(lines) or _is_blank(lines[i]):
            raise FormatError(f"header key {key!r} has no value", source, key_line)

        value = lines[i]
        value_line = i + 1
        i += 1

        if key == KEY_UPDATE:
            updates.append(_parse_timestamp(value, key, source, value_line))
        elif key == KEY_PREVIOUS:
            previous.append(_parse_int(value, key, source, value_line))
        elif key in single:
            raise FormatError(f"header key {key!r} given more than once", source, key_line)
        else:
            single[key] = value
            # validate eagerly so the error points at the offending line
            if key in (KEY_ID, KEY_PARENT):
                _parse_int(value, key, source, value_line)
            elif key == KEY_CREATE:
                _parse_timestamp(value, key, source, value_line)

    if KEY_ID not in single:
        raise FormatError("missing required header key 'id'", source)
    if KEY_CREATE not in single:
        raise FormatError("missing required header key 'create'", source)

    body = [line for line in lines[i:] if not _is_blank(line)]
    content: Union[TextContent, ImageContent]
    try:
        if body and body[0].strip() == IMAGE_MARKER:
            paths = body[1:]
            if len(paths) != 1:
                raise FormatError(f"image record needs exactly one asset path, found {len(paths)} lines", source)
            content = ImageContent(path=paths[0])
        else:
            content = TextContent(paragraphs=body)

        note = Note(
            id=_parse_int(single[KEY_ID], KEY_ID, source, None),
            alternative=single.get(KEY_ALTERNATIVE),
            create_at=_parse_timestamp(single[KEY_CREATE], KEY_CREATE, source, None),
            update_at=updates,
            title=single.get(KEY_TITLE),
            content=content,
        )
    except ValidationError as e:
        raise FormatError(f"invalid note: {e.errors()[0]['msg']}", source) from e

    parent = single.get(KEY_PARENT)
    return ConnectedNote(
        note=note,
        parent_id=_parse_int(parent, KEY_PARENT, source, None) if parent is not None else None,
        previous_ids=previous,
        top_level=top_level,
    )


def encode_record(record: Union[ConnectedNote, Note]) -> str:
    """Serializes a note record. Inverse of decode_record."""
    if isinstance(record, Note):
        record = ConnectedNote(note=record)
    note = record.note

    header: List[str] = []
    if record.top_level:
        header.append(MARKER_TOP_LEVEL)
    header += [KEY_ID, str(note.id)]
    if note.alternative is not None:
        header += [KEY_ALTERNATIVE, note.alternative]
    header += [KEY_CREATE, format_timestamp(note.create_at)]
    for stamp in note.update_at:
        header += [KEY_UPDATE, format_timestamp(stamp)]
    if record.parent_id is not None:
        header += [KEY_PARENT, str(record.parent_id)]
    for previous_id in record.previous_ids:
        header += [KEY_PREVIOUS, str(previous_id)]
    if note.title is not None:
        header += [KEY_TITLE, note.title]

    if isinstance(note.content, ImageContent):
        body = f"{IMAGE_MARKER}\n{note.content.path}\n"
    else:
        body = "".join(f"{paragraph}\n\n" for paragraph in note.content.paragraphs)

    return "\n".join(header) + "\n\n" + body
