"""
Core Logic: NoteController

Authoring flows. Every create/update runs "rebuild graph, mutate, write
record" inside the record store's writer lock, so two id allocations can
never collide. The in-memory graph itself is never mutated; it is rebuilt
from the records after each write.
"""

import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Iterable, List, Optional, Union

from .builder import build_index
from .errors import DuplicateAliasError, DuplicateNoteError, NotFoundError
from ..config import settings
from ..models.note import ID_SENTINEL, ConnectedNote, ImageContent, Note, TextContent
from ..storage.engine import GraphStore, RecordStore
from ..utils.events import log_event

logger = logging.getLogger(__name__)


def _now() -> datetime:
    """Current local time with its fixed UTC offset."""
    return datetime.now().astimezone()


def _content(paragraphs: Optional[Iterable[str]], image: Optional[str]) -> Union[TextContent, ImageContent]:
    if image is not None:
        if paragraphs:
            raise ValueError("A note holds either paragraphs or an image, not both")
        return ImageContent(path=image)
    return TextContent(paragraphs=list(paragraphs or []))


class NoteController:
    def __init__(self, notes_dir: Union[Path, str, None] = None):
        self.store = RecordStore(notes_dir if notes_dir is not None else settings.NOTES_DIR)
        self._graph: Optional[GraphStore] = None

    @property
    def graph(self) -> GraphStore:
        """The most recently built graph."""
        if self._graph is None:
            self._graph = build_index(self.store.notes_dir)
        return self._graph

    def reload(self) -> GraphStore:
        self._graph = build_index(self.store.notes_dir)
        return self._graph

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    @staticmethod
    def _check_exists(graph: GraphStore, note_ids: Iterable[int]) -> None:
        for note_id in note_ids:
            if note_id not in graph:
                raise NotFoundError(f"{ID_SENTINEL}{note_id}")

    @staticmethod
    def _check_alias(graph: GraphStore, alternative: Optional[str], owner_id: Optional[int]) -> None:
        if alternative is None:
            return
        for note in graph.notes():
            if note.alternative == alternative and note.id != owner_id:
                raise DuplicateAliasError(f"Alias '{alternative}' is already used by note {note.id}")

    # ------------------------------------------------------------------
    # Authoring
    # ------------------------------------------------------------------

    def create_note(
        self,
        title: Optional[str] = None,
        paragraphs: Optional[List[str]] = None,
        image: Optional[str] = None,
        alternative: Optional[str] = None,
        parent: Optional[int] = None,
        previous: Optional[List[int]] = None,
        top_level: bool = False,
    ) -> ConnectedNote:
        """Allocates the next id and writes a new record."""
        previous = list(previous or [])
        with self.store.lock():
            graph = self.reload()
            self._check_exists(graph, ([parent] if parent is not None else []) + previous)
            self._check_alias(graph, alternative, None)

            note = Note(
                id=graph.next_id(),
                alternative=alternative,
                create_at=_now(),
                title=title,
                content=_content(paragraphs, image),
            )
            record = ConnectedNote(note=note, parent_id=parent, previous_ids=previous, top_level=top_level)
            path = self.store.path_for(note.id)
            if path.exists():
                raise DuplicateNoteError(f"{path} already holds a record for another note id")
            self.store.write(record, path)
            self.reload()

        logger.info("created note %d at %s", note.id, path)
        log_event("NOTE_CREATED", {
            "id": note.id,
            "alternative": note.alternative,
            "parent": parent,
            "previous": previous,
        })
        return record

    def update_note(
        self,
        key: str,
        title: Optional[str] = None,
        paragraphs: Optional[List[str]] = None,
        image: Optional[str] = None,
        alternative: Optional[str] = None,
        parent: Optional[int] = None,
        add_previous: Optional[List[int]] = None,
        top_level: Optional[bool] = None,
    ) -> ConnectedNote:
        """
        Rewrites an existing note.

        Relations start from the graph's connected view of the note, not from
        anything cached, so edges stay the single source of truth. Each call
        appends one update timestamp, strictly later than every earlier one. The
        record is rewritten in the file it was loaded from, whatever its name.
        """
        with self.store.lock():
            graph = self.reload()
            note = graph.find(key, strict=True)
            view = graph.connected_view(note.id)

            changes = {}
            updated_fields = []
            if title is not None:
                changes["title"] = title
                updated_fields.append("title")
            if alternative is not None:
                self._check_alias(graph, alternative, note.id)
                changes["alternative"] = alternative
                updated_fields.append("alternative")
            if paragraphs is not None or image is not None:
                changes["content"] = _content(paragraphs, image)
                updated_fields.append("content")

            parent_id = view.parent_id
            if parent is not None:
                if parent == note.id:
                    raise ValueError(f"Note {note.id} cannot own itself")
                self._check_exists(graph, [parent])
                parent_id = parent
                updated_fields.append("parent")

            previous_ids = list(view.previous_ids)
            if add_previous:
                self._check_exists(graph, add_previous)
                previous_ids += [p for p in add_previous if p not in previous_ids]
                updated_fields.append("previous")

            if top_level is not None:
                updated_fields.append("top_level")

            stamp = _now()
            latest = max([note.create_at, *note.update_at])
            if stamp <= latest:
                stamp = latest + timedelta(microseconds=1)
            changes["update_at"] = [*note.update_at, stamp]

            updated = Note(**{**dict(note), **changes})
            record = ConnectedNote(
                note=updated,
                parent_id=parent_id,
                previous_ids=previous_ids,
                top_level=view.top_level if top_level is None else top_level,
            )
            source = graph.source_of(note.id)
            self.store.write(record, Path(source) if source is not None else None)
            self.reload()

        logger.info("updated note %d (%s)", updated.id, ", ".join(updated_fields) or "touch")
        log_event("NOTE_UPDATED", {
            "id": updated.id,
            "updated_fields": updated_fields,
            "update_count": len(updated.update_at),
        })
        return record
