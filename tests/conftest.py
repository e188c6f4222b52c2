# tests/conftest.py
import json
import os
from pathlib import Path

import pytest

# Qt widgets are created without a display during tests.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtWidgets import QApplication  # noqa: E402


@pytest.fixture(scope="session")
def qapp():
    """Creates a QApplication instance for the test session."""
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    return app


@pytest.fixture
def fake_home(tmp_path, monkeypatch):
    """Point ``Path.home()`` at a temporary directory."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setattr(Path, "home", lambda: home)
    return home


@pytest.fixture
def project_dir(tmp_path):
    """Creates a small binder project on disk."""
    root = tmp_path / "Novel"
    (root / "content").mkdir(parents=True)

    binder = {
        "id": "root",
        "title": "Draft",
        "type": "folder",
        "children": [
            {
                "id": "part-1",
                "title": "Part One",
                "type": "folder",
                "children": [
                    {"id": "scene-1", "title": "Arrival", "type": "text"},
                ],
            },
            {"id": "ch-c", "title": "Charlie", "type": "text"},
            {"id": "ch-a", "title": "Alpha", "type": "text"},
            {"id": "ch-b", "title": "Bravo", "type": "text"},
        ],
    }
    (root / "binder.json").write_text(json.dumps(binder), encoding="utf-8")
    (root / "content" / "ch-a.txt").write_text("one two three", encoding="utf-8")
    (root / "content" / "ch-b.txt").write_text("  single  ", encoding="utf-8")
    (root / "content" / "scene-1.txt").write_text("The train was late.", encoding="utf-8")

    metadata = {
        "version": 1,
        "documents": {
            "ch-c": {
                "documentId": "ch-c",
                "label": {"name": "Red", "colorValue": 0xFFE53935},
                "status": "first_draft",
                "synopsis": "The storm hits.",
                "modifiedAt": "2024-03-04T18:02:11",
            },
        },
    }
    (root / "metadata.json").write_text(json.dumps(metadata), encoding="utf-8")
    return root
