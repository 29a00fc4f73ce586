"""
Test Suite for the static site publisher
"""

import json
from datetime import datetime, timezone

import pytest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from notegraph.core.logic import NoteController
from notegraph.core.publish import check_layout, copy_asset, publish_site
from notegraph.models.note import Note, TextContent
from notegraph.storage.engine import GraphStore


@pytest.fixture
def site_graph(tmp_path):
    controller = NoteController(tmp_path / "notes")
    controller.create_note(title="Home", paragraphs=["welcome"], alternative="about", top_level=True)
    controller.create_note(title="Child", parent=1)
    controller.create_note(title="Cat", image="img/cat.png", parent=1)

    assets = tmp_path / "assets"
    (assets / "img").mkdir(parents=True)
    (assets / "img" / "cat.png").write_bytes(b"\x89PNG fake")
    return controller.graph


class TestPublishSite:
    """Test: one page per note plus a home page"""

    def test_writes_pages_and_assets(self, tmp_path, site_graph):
        out = tmp_path / "site"
        result = publish_site(site_graph, out, tmp_path / "assets", base_url="/notes")

        assert result == {"pages": 3, "assets": 1}
        assert (out / "index.html").is_file()
        assert (out / "about" / "index.html").is_file()
        assert (out / "@2" / "index.html").is_file()
        assert (out / "@3" / "index.html").is_file()
        assert (out / "img" / "cat.png").read_bytes() == b"\x89PNG fake"

        home = (out / "index.html").read_text(encoding="utf-8")
        assert home.startswith("<!DOCTYPE html>")
        assert 'id="note-1"' in home

        about = (out / "about" / "index.html").read_text(encoding="utf-8")
        assert "<title>Home</title>" in about
        assert 'href="/notes/@2"' in about
        assert 'src="/notes/img/cat.png"' in about
        print("✅ Site published")

    def test_publishing_twice_is_harmless(self, tmp_path, site_graph):
        out = tmp_path / "site"
        publish_site(site_graph, out, tmp_path / "assets")
        first = {p.relative_to(out): p.read_bytes() for p in out.rglob("*") if p.is_file()}

        publish_site(site_graph, out, tmp_path / "assets")
        second = {p.relative_to(out): p.read_bytes() for p in out.rglob("*") if p.is_file()}
        assert first == second

    def test_defaults_and_event(self, site_graph, isolated_settings):
        publish_site(site_graph)

        assert (isolated_settings.OUTPUT_DIR / "about" / "index.html").is_file()
        events = [
            json.loads(line)
            for line in isolated_settings.EVENT_LOG_PATH.read_text(encoding="utf-8").splitlines()
        ]
        assert events[-1]["event"] == "SITE_PUBLISHED"
        assert events[-1]["data"]["pages"] == 3

    def test_missing_asset_fails(self, tmp_path, site_graph):
        with pytest.raises(OSError):
            publish_site(site_graph, tmp_path / "site", tmp_path / "empty-assets")


class TestLayoutCollisions:
    """Test: pages and assets never fight over a name"""

    def test_alias_named_like_asset_directory(self, tmp_path):
        controller = NoteController(tmp_path / "notes")
        controller.create_note(title="Gallery", alternative="img", top_level=True)
        controller.create_note(image="img/cat.png", parent=1)
        out = tmp_path / "site"

        with pytest.raises(ValueError) as exc_info:
            publish_site(controller.graph, out, tmp_path / "assets")
        assert "img" in str(exc_info.value)
        assert not out.exists()

    def test_home_page_name_is_reserved(self, tmp_path):
        graph = GraphStore()
        graph.add_note(Note.model_construct(
            id=1,
            alternative="index.html",
            create_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
            update_at=[],
            title=None,
            content=TextContent(),
        ))
        with pytest.raises(ValueError):
            check_layout(graph)


class TestCopyAsset:
    """Test: asset paths stay inside their directories"""

    def test_escaping_path_rejected(self, tmp_path):
        assets = tmp_path / "assets"
        assets.mkdir()
        (tmp_path / "secret.txt").write_text("x", encoding="utf-8")
        with pytest.raises(ValueError):
            copy_asset(assets, "../secret.txt", tmp_path / "site")
