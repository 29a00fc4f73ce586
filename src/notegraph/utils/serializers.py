"""
Serialization helpers for exposing notes via the CLI.
"""

from __future__ import annotations

from typing import Any, Dict

from ..models.note import ConnectedNote, Note


def serialize_note(note: Note) -> Dict[str, Any]:
    """
    Returns a JSON-serializable dict representation of a Note.

    Dates are converted to ISO strings so that callers
    don't have to handle datetime objects manually.
    """
    data = note.model_dump(mode="json")
    data["key"] = note.key
    return data


def serialize_connected(record: ConnectedNote) -> Dict[str, Any]:
    data = serialize_note(record.note)
    data["parent_id"] = record.parent_id
    data["previous_ids"] = list(record.previous_ids)
    data["top_level"] = record.top_level
    return data
