"""
notegraph command line

Read/write access to the notes directory. Results are printed as JSON on
stdout; errors as {"error": ...} with exit status 1.
"""

import argparse
import json
import sys
from typing import Any, Dict, List, Optional

from .config import settings
from .core.builder import build_index
from .core.errors import NoteGraphError
from .core.logic import NoteController
from .core.publish import publish_site
from .core.renderer import render
from .logging_setup import setup_logging
from .storage.engine import GraphStore
from .utils.serializers import serialize_connected, serialize_note


def list_notes(graph: GraphStore) -> Dict[str, Any]:
    return {"notes": [serialize_note(note) for note in graph.notes()]}


def get_note(graph: GraphStore, key: str) -> Dict[str, Any]:
    note = graph.find(key)
    record = graph.connected_view(note.id)
    data = serialize_connected(record)
    data["children"] = [child.id for child in graph.children(note.id)]
    return {"note": data}


def get_graph(graph: GraphStore) -> Dict[str, Any]:
    nodes = [serialize_note(note) for note in graph.notes()]
    edges = [
        {"source": edge.source_id, "target": edge.target_id, "kind": edge.kind.value}
        for edge in graph.edges()
    ]
    return {"nodes": nodes, "edges": edges, "top_level": sorted(graph.top_level)}


def render_note(graph: GraphStore, key: str, base_url: str) -> Dict[str, Any]:
    note = graph.find(key)
    return {"key": note.key, "html": render(graph, note, base_url)}


def _paragraphs(text: Optional[str]) -> Optional[List[str]]:
    if text is None:
        return None
    return [line for line in text.splitlines() if line.strip()]


def _top_level(args: argparse.Namespace) -> Optional[bool]:
    if args.top_level:
        return True
    if args.not_top_level:
        return False
    return None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="notegraph", description="notegraph CLI")
    parser.add_argument("--notes-dir", default=None, help=f"Notes directory (default: {settings.NOTES_DIR})")
    parser.add_argument("--log-level", default=None, help="Log level for stderr output")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("stats")
    sub.add_parser("list-notes")
    sub.add_parser("get-graph")
    note_cmd = sub.add_parser("get-note")
    note_cmd.add_argument("--key", required=True, help="'@<id>' or alias")

    render_cmd = sub.add_parser("render")
    render_cmd.add_argument("--key", required=True, help="'@<id>' or alias")
    render_cmd.add_argument("--base-url", default=settings.BASE_URL)

    for name in ("create", "update"):
        cmd = sub.add_parser(name)
        if name == "update":
            cmd.add_argument("--key", required=True, help="'@<id>' or alias")
        cmd.add_argument("--title")
        cmd.add_argument("--alternative", help="Alias")
        cmd.add_argument("--text", help="Body text, one paragraph per line")
        cmd.add_argument("--image", help="Asset path, relative to the assets directory")
        cmd.add_argument("--parent", type=int)
        cmd.add_argument("--previous", type=int, action="append", default=[], help="Repeatable")
        cmd.add_argument("--top-level", action="store_true")
        if name == "update":
            cmd.add_argument("--not-top-level", action="store_true")

    publish = sub.add_parser("publish")
    publish.add_argument("--out", default=None, help=f"Output directory (default: {settings.OUTPUT_DIR})")
    publish.add_argument("--assets", default=None, help=f"Assets directory (default: {settings.ASSETS_DIR})")
    publish.add_argument("--base-url", default=settings.BASE_URL)
    return parser


def run(args: argparse.Namespace) -> Dict[str, Any]:
    controller = NoteController(args.notes_dir)

    if args.command == "create":
        record = controller.create_note(
            title=args.title,
            paragraphs=_paragraphs(args.text),
            image=args.image,
            alternative=args.alternative,
            parent=args.parent,
            previous=args.previous,
            top_level=args.top_level,
        )
        return {"note": serialize_connected(record)}
    if args.command == "update":
        record = controller.update_note(
            args.key,
            title=args.title,
            paragraphs=_paragraphs(args.text),
            image=args.image,
            alternative=args.alternative,
            parent=args.parent,
            add_previous=args.previous,
            top_level=_top_level(args),
        )
        return {"note": serialize_connected(record)}

    graph = build_index(controller.store.notes_dir)
    if args.command == "stats":
        return graph.stats()
    if args.command == "list-notes":
        return list_notes(graph)
    if args.command == "get-graph":
        return get_graph(graph)
    if args.command == "get-note":
        return get_note(graph, args.key)
    if args.command == "render":
        return render_note(graph, args.key, args.base_url)
    if args.command == "publish":
        return publish_site(graph, args.out, args.assets, args.base_url)
    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        sys.exit(1)

    setup_logging(args.log_level)
    try:
        result = run(args)
    except (NoteGraphError, ValueError, OSError) as exc:
        print(json.dumps({"error": str(exc), "type": type(exc).__name__}, ensure_ascii=False))
        sys.exit(1)

    print(json.dumps(result, ensure_ascii=False))


if __name__ == "__main__":
    main()
