"""
Index Builder: records -> GraphStore

All notes are inserted before any edge so that forward references (a child
stored before its parent) resolve. Edges are added in ascending note id
order, which makes the resulting graph independent of the order in which
records were enumerated.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from .errors import DanglingReferenceError, DuplicateAliasError, DuplicateNoteError
from ..config import settings
from ..models.note import ConnectedNote, EdgeKind
from ..storage.codec import decode_record
from ..storage.engine import GraphStore, RecordStore

logger = logging.getLogger(__name__)


def build_graph(
    records: Iterable[Tuple[str, str]],
    allow_duplicate_aliases: Optional[bool] = None,
) -> GraphStore:
    """
    Builds a graph from (source, text) record pairs.

    Decoding fails fast: the first malformed record aborts the build with a
    FormatError naming that record. Reference problems raise an
    IndexBuildError subclass. No partially connected graph is ever returned.
    """
    if allow_duplicate_aliases is None:
        allow_duplicate_aliases = settings.ALLOW_DUPLICATE_ALIASES

    # 1. Decode
    decoded: List[ConnectedNote] = []
    sources: Dict[int, str] = {}
    for source, text in records:
        record = decode_record(text, source=source)
        note_id = record.note.id
        if note_id in sources:
            raise DuplicateNoteError(f"Note {note_id} is defined by both {sources[note_id]} and {source}")
        sources[note_id] = source
        decoded.append(record)
    decoded.sort(key=lambda r: r.note.id)

    # 2. Nodes
    graph = GraphStore()
    aliases: Dict[str, int] = {}
    for record in decoded:
        note = record.note
        if note.alternative is not None:
            if note.alternative in aliases and not allow_duplicate_aliases:
                raise DuplicateAliasError(
                    f"Alias '{note.alternative}' is used by notes {aliases[note.alternative]} and {note.id}"
                )
            aliases.setdefault(note.alternative, note.id)
        graph.add_note(note, top_level=record.top_level, source=sources[note.id])

    # 3. + 4. Edges
    for record in decoded:
        child_id = record.note.id
        if record.parent_id is not None:
            _check_reference(graph, record.parent_id, child_id, "parent", sources)
            graph.add_edge(record.parent_id, child_id, EdgeKind.OWN)
        for previous_id in record.previous_ids:
            _check_reference(graph, previous_id, child_id, "previous", sources)
            graph.add_edge(previous_id, child_id, EdgeKind.CAUSE)

    cycle = graph.own_cycle()
    if cycle:
        logger.warning("ownership cycle between notes %s", [u for u, _ in cycle])

    stats = graph.stats()
    logger.info(
        "index built: %d notes, %d own edges, %d cause edges",
        stats["notes"], stats["own_edges"], stats["cause_edges"],
    )
    return graph


def _check_reference(graph: GraphStore, target: int, note_id: int, field: str, sources: Dict[int, str]) -> None:
    if target not in graph:
        raise DanglingReferenceError(
            f"Note {note_id} ({sources[note_id]}) references missing {field} note {target}"
        )


def build_index(source: Union[Path, str, None] = None, allow_duplicate_aliases: Optional[bool] = None) -> GraphStore:
    """Loads every record of a notes directory. A missing directory gives an empty graph."""
    store = RecordStore(source if source is not None else settings.NOTES_DIR)
    return build_graph(store.iter_records(), allow_duplicate_aliases=allow_duplicate_aliases)
