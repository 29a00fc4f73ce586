"""
Resolver: look up a note by '@<id>' or by alias
"""

import logging
from typing import TYPE_CHECKING, List

from .errors import AmbiguousKeyError, InvalidKeyError, NotFoundError
from ..models.note import ID_SENTINEL, Note

if TYPE_CHECKING:
    from ..storage.engine import GraphStore

logger = logging.getLogger(__name__)


def parse_id_key(key: str) -> int:
    """Returns the id of an '@<digits>' key. Raises InvalidKeyError otherwise."""
    digits = key[len(ID_SENTINEL):]
    # isdigit() also accepts non-ASCII digits
    if not digits or not (digits.isascii() and digits.isdigit()):
        raise InvalidKeyError(key)
    return int(digits)


def find_note(graph: "GraphStore", key: str, strict: bool = False) -> Note:
    """
    Resolves a key to exactly one note.

    '@5' selects the note with id 5. Any other key is compared against every
    note's alias by exact string equality. If several aliases match, the first
    note in graph order wins; with strict=True an AmbiguousKeyError is raised.
    """
    if key.startswith(ID_SENTINEL):
        note = graph.get(parse_id_key(key))
        if note is None:
            raise NotFoundError(key)
        return note

    matches: List[Note] = [n for n in graph.notes() if n.alternative == key]
    if not matches:
        raise NotFoundError(key)
    if len(matches) > 1:
        ids = [n.id for n in matches]
        if strict:
            raise AmbiguousKeyError(key, ids)
        logger.warning("alias %r is shared by notes %s, using %d", key, ids, ids[0])
    return matches[0]
