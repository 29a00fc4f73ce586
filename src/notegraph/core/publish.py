"""
Publisher: writes the rendered graph as a static site

    <output>/index.html          home page, top-level notes
    <output>/<key>/index.html    one page per note ('@12' or its alias)
    <output>/<asset path>        copied image assets
"""

import html as _html
import logging
import shutil
from pathlib import Path
from typing import Dict, Optional, Union

from .renderer import display_hue, render, render_index
from ..config import settings
from ..models.note import ImageContent, Note
from ..storage.engine import GraphStore
from ..utils.events import log_event

logger = logging.getLogger(__name__)

HOME_PAGE = "index.html"

_STYLE = (
    "body{font-family:system-ui,sans-serif;max-width:46rem;margin:2rem auto;padding:0 1rem}"
    ".note{border-left:6px solid hsl(var(--hue) 60% 55%);background:hsl(var(--hue) 60% 96%);"
    "padding:.5rem 1rem;margin:.75rem 0}"
    ".note-meta{font-size:12px;color:#666;display:flex;gap:.75rem}"
    ".note-link{color:inherit;text-decoration:none}"
    ".note-child{margin-left:1.5rem}"
    "img{max-width:100%}"
)


def page(title: str, body: str, hue: int, base_url: str = "") -> str:
    """Wraps a rendered fragment into a standalone HTML document."""
    home = f"{base_url.rstrip('/')}/"
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en"><head><meta charset="utf-8">'
        f"<title>{_html.escape(title)}</title>"
        f"<style>{_STYLE}</style></head>"
        f'<body style="--hue:{hue}">'
        f'<nav><a href="{_html.escape(home)}">home</a></nav>'
        f"{body}</body></html>\n"
    )


def copy_asset(assets_dir: Path, relative: str, output_dir: Path) -> Path:
    """Copies one asset. Repeating the same copy is harmless."""
    source = (assets_dir / relative).resolve()
    target = (output_dir / relative).resolve()
    if not source.is_relative_to(assets_dir.resolve()) or not target.is_relative_to(output_dir.resolve()):
        raise ValueError(f"Asset path escapes its directory: {relative}")
    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(source, target)
    return target


def _title(note: Note) -> str:
    return note.title or note.key


def check_layout(graph: GraphStore) -> None:
    """Raises ValueError if a note page and an asset would claim the same top-level name."""
    assets = {}
    for note in graph.notes():
        if isinstance(note.content, ImageContent):
            assets.setdefault(Path(note.content.path).parts[0], note.content.path)
    for note in graph.notes():
        if note.key == HOME_PAGE or note.key in assets:
            taken = HOME_PAGE if note.key == HOME_PAGE else assets[note.key]
            raise ValueError(f"Page for note {note.key!r} collides with {taken!r} in the output directory")


def publish_site(
    graph: GraphStore,
    output_dir: Union[Path, str, None] = None,
    assets_dir: Union[Path, str, None] = None,
    base_url: str = "",
    seed: Optional[str] = None,
) -> Dict[str, int]:
    """Renders every note into its own page and copies referenced assets."""
    output_dir = Path(output_dir if output_dir is not None else settings.OUTPUT_DIR)
    assets_dir = Path(assets_dir if assets_dir is not None else settings.ASSETS_DIR)
    check_layout(graph)
    output_dir.mkdir(parents=True, exist_ok=True)

    (output_dir / HOME_PAGE).write_text(
        page("notes", render_index(graph, base_url, seed), hue=0, base_url=base_url),
        encoding="utf-8",
    )

    pages = 0
    assets = 0
    for note in graph.notes():
        note_dir = output_dir / note.key
        note_dir.mkdir(parents=True, exist_ok=True)
        fragment = render(graph, note, base_url, seed)
        (note_dir / HOME_PAGE).write_text(
            page(_title(note), fragment, display_hue(note.id, seed), base_url),
            encoding="utf-8",
        )
        pages += 1
        if isinstance(note.content, ImageContent):
            copy_asset(assets_dir, note.content.path, output_dir)
            assets += 1

    logger.info("published %d pages and %d assets to %s", pages, assets, output_dir)
    log_event("SITE_PUBLISHED", {"output": str(output_dir), "pages": pages, "assets": assets})
    return {"pages": pages, "assets": assets}
