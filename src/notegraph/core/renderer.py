"""
Renderer: HTML fragment for a note and its directly owned children

Pure functions of the graph. Asset files are not touched here; copying them
next to the pages is the publisher's job.
"""

import hashlib
import html as _html
import urllib.parse
from typing import List, Optional

from ..config import settings
from ..models.note import ID_SENTINEL, ImageContent, Note
from ..storage.codec import format_timestamp
from ..storage.engine import GraphStore

MODE_CURRENT = "current"
MODE_CHILD = "child"


def display_hue(note_id: int, seed: Optional[str] = None) -> int:
    """Cosmetic hue in [0, 360), stable for a given seed."""
    seed = settings.HUE_SEED if seed is None else seed
    digest = hashlib.blake2b(f"{seed}:{note_id}".encode("utf-8"), digest_size=4).digest()
    return int.from_bytes(digest, "big") % 360


def note_url(note: Note, base_url: str = "") -> str:
    return f"{base_url.rstrip('/')}/{urllib.parse.quote(note.key, safe=ID_SENTINEL)}"


def _time(stamp, css: str, label: str) -> str:
    iso = format_timestamp(stamp)
    return f'<time class="{css}" datetime="{_html.escape(iso)}">{label} {_html.escape(iso)}</time>'


def _body(note: Note, base_url: str) -> str:
    content = note.content
    if isinstance(content, ImageContent):
        src = f"{base_url.rstrip('/')}/{urllib.parse.quote(content.path)}"
        alt = note.title or note.key
        return f'<img src="{_html.escape(src)}" alt="{_html.escape(alt)}">'
    return "".join(f"<p>{_html.escape(p)}</p>" for p in content.paragraphs)


def render_block(note: Note, mode: str = MODE_CURRENT, base_url: str = "", seed: Optional[str] = None) -> str:
    """The self-block of one note. mode only changes presentation."""
    hue = display_hue(note.id, seed)
    heading = "h1" if mode == MODE_CURRENT else "h2"

    ident = f'<span class="note-id">{ID_SENTINEL}{note.id}</span>'
    if note.alternative:
        ident += f' <span class="note-alias">{_html.escape(note.alternative)}</span>'
    parts: List[str] = [f'<header class="note-meta">{ident}']
    parts.append(_time(note.create_at, "note-created", "created"))
    if note.last_update is not None:
        parts.append(_time(note.last_update, "note-updated", "updated"))
    parts.append("</header>")
    if note.title:
        parts.append(f'<{heading} class="note-title">{_html.escape(note.title)}</{heading}>')
    parts.append(f'<div class="note-body">{_body(note, base_url)}</div>')

    return (
        f'<article class="note note-{mode}" id="note-{note.id}" style="--hue:{hue}">'
        f'{"".join(parts)}'
        f'</article>'
    )


def _child_block(child: Note, base_url: str, seed: Optional[str]) -> str:
    return (
        f'<a class="note-link" href="{_html.escape(note_url(child, base_url))}">'
        f'{render_block(child, MODE_CHILD, base_url, seed)}'
        f'</a>'
    )


def render(graph: GraphStore, note: Note, base_url: str = "", seed: Optional[str] = None) -> str:
    """A note followed by its owned children, oldest child first."""
    children = graph.children(note.id)
    body = render_block(note, MODE_CURRENT, base_url, seed)
    if children:
        body += (
            '<section class="note-children">'
            + "".join(_child_block(child, base_url, seed) for child in children)
            + "</section>"
        )
    return body


def render_index(graph: GraphStore, base_url: str = "", seed: Optional[str] = None) -> str:
    """Home page fragment: every top-level note as a child block."""
    notes = graph.top_level_notes()
    if not notes:
        return '<p class="empty">No notes yet.</p>'
    return (
        '<section class="note-children">'
        + "".join(_child_block(note, base_url, seed) for note in notes)
        + "</section>"
    )
