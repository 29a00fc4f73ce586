"""
Storage Engine: GraphStore, RecordStore

GraphStore is the in-memory note graph. RecordStore keeps one text record per
note on disk and implements cross-platform locking and atomic writes.
"""

import logging
import os
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Set, Tuple, Union

import networkx as nx

from ..config import settings
from ..core.errors import DuplicateNoteError, DuplicateParentError, NotFoundError, UnknownNoteError
from ..core.resolver import find_note
from ..models.note import ID_SENTINEL, ConnectedNote, EdgeKind, Note, NoteRelation
from .codec import encode_record

logger = logging.getLogger(__name__)

# --- Cross-Platform Locking ---
try:
    import fcntl
    def lock_file(f): fcntl.flock(f, fcntl.LOCK_EX)
    def unlock_file(f): fcntl.flock(f, fcntl.LOCK_UN)
except ImportError:
    # Windows: the in-process lock below still serializes writers
    def lock_file(f): pass
    def unlock_file(f): pass

# One writer at a time within this process
_write_lock = threading.Lock()


def _creation_order(note: Note) -> Tuple:
    return (note.create_at, note.id)


class GraphStore:
    """Notes as nodes of a MultiDiGraph, Own/Cause relations as tagged edges."""

    def __init__(self):
        self.graph = nx.MultiDiGraph()
        self.top_level: Set[int] = set()
        self._edge_seq = 0

    def __len__(self) -> int:
        return self.graph.number_of_nodes()

    def __contains__(self, note_id: int) -> bool:
        return note_id in self.graph

    def add_note(self, note: Note, top_level: bool = False, source: Optional[str] = None) -> int:
        """Adds a node. Edges are added separately. source is the record it came from, if any."""
        if note.id in self.graph:
            raise DuplicateNoteError(f"Note {note.id} already exists")
        self.graph.add_node(note.id, note=note, source=source)
        if top_level:
            self.top_level.add(note.id)
        return note.id

    def add_edge(self, parent_id: int, child_id: int, kind: Union[EdgeKind, str]) -> NoteRelation:
        kind = EdgeKind(kind)
        for node_id in (parent_id, child_id):
            if node_id not in self.graph:
                raise UnknownNoteError(f"Cannot link {parent_id} -> {child_id}: note {node_id} is not indexed")
        if kind is EdgeKind.OWN:
            current = self.parent_of(child_id)
            if current is not None:
                raise DuplicateParentError(
                    f"Note {child_id} is already owned by {current}, cannot add parent {parent_id}"
                )
        self._edge_seq += 1
        self.graph.add_edge(parent_id, child_id, kind=kind, seq=self._edge_seq)
        return NoteRelation(source_id=parent_id, target_id=child_id, kind=kind)

    def get(self, note_id: int) -> Optional[Note]:
        node_data = self.graph.nodes.get(note_id)
        if node_data:
            return node_data["note"]
        return None

    def source_of(self, note_id: int) -> Optional[str]:
        node_data = self.graph.nodes.get(note_id)
        return node_data.get("source") if node_data else None

    def notes(self) -> List[Note]:
        """All notes in insertion order."""
        return [data["note"] for _, data in self.graph.nodes(data=True)]

    def find(self, key: str, strict: bool = False) -> Note:
        return find_note(self, key, strict=strict)

    def _in_edges(self, note_id: int, kind: EdgeKind) -> List[int]:
        edges = sorted(
            (attrs["seq"], source)
            for source, _, attrs in self.graph.in_edges(note_id, data=True)
            if attrs["kind"] is kind
        )
        return [source for _, source in edges]

    def _out_edges(self, note_id: int, kind: EdgeKind) -> List[int]:
        edges = sorted(
            (attrs["seq"], target)
            for _, target, attrs in self.graph.out_edges(note_id, data=True)
            if attrs["kind"] is kind
        )
        return [target for _, target in edges]

    def parent_of(self, note_id: int) -> Optional[int]:
        parents = self._in_edges(note_id, EdgeKind.OWN)
        return parents[0] if parents else None

    def connected_view(self, note_id: int) -> ConnectedNote:
        """Derives the record form of a note from its current incoming edges."""
        note = self.get(note_id)
        if note is None:
            raise NotFoundError(f"{ID_SENTINEL}{note_id}")
        return ConnectedNote(
            note=note,
            parent_id=self.parent_of(note_id),
            previous_ids=self._in_edges(note_id, EdgeKind.CAUSE),
            top_level=note_id in self.top_level,
        )

    def children(self, note_id: int) -> List[Note]:
        """Directly owned notes, oldest first."""
        children = [self.graph.nodes[c]["note"] for c in self._out_edges(note_id, EdgeKind.OWN)]
        return sorted(children, key=_creation_order)

    def causes(self, note_id: int) -> List[Note]:
        """Notes this one is a cause of, in link order."""
        return [self.graph.nodes[t]["note"] for t in self._out_edges(note_id, EdgeKind.CAUSE)]

    def top_level_notes(self) -> List[Note]:
        return sorted((self.graph.nodes[n]["note"] for n in self.top_level), key=_creation_order)

    def next_id(self) -> int:
        return max(self.graph.nodes, default=0) + 1

    def edges(self) -> List[NoteRelation]:
        """All edges in insertion order."""
        edges = sorted(
            (attrs["seq"], source, target, attrs["kind"])
            for source, target, attrs in self.graph.edges(data=True)
        )
        return [NoteRelation(source_id=s, target_id=t, kind=k) for _, s, t, k in edges]

    def own_cycle(self) -> List[Tuple[int, int]]:
        """Returns one cycle of Own edges, or [] if ownership is a forest."""
        own = nx.DiGraph(
            (source, target)
            for source, target, attrs in self.graph.edges(data=True)
            if attrs["kind"] is EdgeKind.OWN
        )
        try:
            return [(u, v) for u, v in nx.find_cycle(own)]
        except nx.NetworkXNoCycle:
            return []

    def stats(self) -> Dict[str, int]:
        kinds = [attrs["kind"] for _, _, attrs in self.graph.edges(data=True)]
        return {
            "notes": self.graph.number_of_nodes(),
            "own_edges": kinds.count(EdgeKind.OWN),
            "cause_edges": kinds.count(EdgeKind.CAUSE),
            "top_level": len(self.top_level),
        }


class RecordStore:
    """A directory holding one '<id>.note' text record per note."""

    def __init__(self, notes_dir: Union[Path, str]):
        self.notes_dir = Path(notes_dir)

    def path_for(self, note_id: int) -> Path:
        return self.notes_dir / f"{note_id}{settings.RECORD_SUFFIX}"

    def exists(self) -> bool:
        return self.notes_dir.is_dir()

    def iter_records(self) -> Iterator[Tuple[str, str]]:
        """Yields (source, text) for every record, in sorted path order."""
        if not self.exists():
            logger.info("notes directory %s does not exist yet", self.notes_dir)
            return
        for path in sorted(self.notes_dir.glob(f"*{settings.RECORD_SUFFIX}")):
            if path.is_file():
                yield str(path), path.read_text(encoding="utf-8")

    @contextmanager
    def lock(self):
        """Serializes 'read graph, mutate, write record' across threads and processes."""
        self.notes_dir.mkdir(parents=True, exist_ok=True)
        with _write_lock:
            with open(self.notes_dir / settings.LOCK_FILE_NAME, "w") as lock_f:
                try:
                    lock_file(lock_f)
                    yield
                finally:
                    unlock_file(lock_f)

    def write(self, record: ConnectedNote, path: Optional[Path] = None) -> Path:
        """Writes a record atomically, to path_for(id) unless a path is given. Callers hold lock()."""
        path = self.path_for(record.note.id) if path is None else Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        # Atomic write pattern: write to temp, then rename
        temp_path = path.with_suffix(".tmp")
        with open(temp_path, "w", encoding="utf-8", newline="\n") as f:
            f.write(encode_record(record))
        os.replace(temp_path, path)
        logger.debug("wrote record %s", path)
        return path
