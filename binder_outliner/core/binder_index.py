"""
Binder project loading

This module loads the three read-only snapshots the outliner works on
from a project directory:

1. The binder tree (``binder.json``): nested folders and documents with
   ids, titles and kinds.

2. Raw text contents (``content/<id>.txt``), one file per document.
   Documents without a file simply have no entry in the content map.

3. Per-document metadata (``metadata.json``), via
   ``binder_outliner.core.metadata_store``.

``load_project()`` bundles all three into a ``ProjectSnapshot``. Loading
never raises for bad data: a missing or malformed binder yields an empty
root folder and malformed nodes are skipped with a warning.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator, Mapping, Optional

from binder_outliner.core.metadata_store import load_metadata
from binder_outliner.core.models import (
    BinderItem,
    BinderItemType,
    ContentMap,
    MetadataMap,
)

BINDER_FILENAME = "binder.json"
CONTENT_DIRNAME = "content"
CONTENT_SUFFIX = ".txt"


@dataclass
class ProjectSnapshot:
    """Everything the outliner needs to display one project."""

    root: BinderItem
    contents: ContentMap = field(default_factory=dict)
    metadata: MetadataMap = field(default_factory=dict)


def _item_type_from_str(raw: Any) -> BinderItemType:
    if isinstance(raw, str):
        normalized = raw.strip().lower().replace("-", "_")
        if normalized == "webarchive":
            normalized = "web_archive"
        for kind in BinderItemType:
            if kind.value == normalized:
                return kind
    return BinderItemType.TEXT


def binder_item_from_dict(data: Mapping) -> BinderItem:
    """
    Build a ``BinderItem`` tree from a decoded JSON mapping.

    Unknown ``type`` values are read as plain text documents. Children
    are kept only for folders; malformed children are skipped with a
    warning.

    Args:
        data (Mapping): Node mapping with ``id``, ``title``, ``type``
            and optionally ``children``.

    Returns:
        BinderItem: The decoded node and its subtree.

    Raises:
        KeyError: If ``id`` is missing.
        TypeError: If ``id`` is not a string.
    """
    item_id = data["id"]
    if not isinstance(item_id, str):
        raise TypeError(f"binder item id must be a string, got {item_id!r}")

    kind = _item_type_from_str(data.get("type"))
    children = []
    if kind is BinderItemType.FOLDER:
        for child in data.get("children") or []:
            if not isinstance(child, Mapping):
                logging.warning("Skipping malformed binder node under %r: %r", item_id, child)
                continue
            try:
                children.append(binder_item_from_dict(child))
            except (KeyError, TypeError) as exc:
                logging.warning(
                    "Skipping malformed binder node under %r: %r (error: %s)",
                    item_id,
                    child,
                    exc,
                )

    return BinderItem(
        id=item_id,
        title=str(data.get("title") or ""),
        type=kind,
        children=children,
    )


def _empty_root(project_dir: Path) -> BinderItem:
    return BinderItem(id="", title=Path(project_dir).name, type=BinderItemType.FOLDER)


def load_binder(project_dir: Path) -> BinderItem:
    """
    Load the binder tree of a project.

    Args:
        project_dir (Path): Project directory containing ``binder.json``.

    Returns:
        BinderItem: Root folder. An empty folder named after the project
        directory if the file is missing or malformed.
    """
    path = Path(project_dir) / BINDER_FILENAME
    if not path.exists():
        return _empty_root(project_dir)

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        root = binder_item_from_dict(raw)
    except (OSError, json.JSONDecodeError, KeyError, TypeError, AttributeError) as exc:
        logging.warning("Could not load binder from %s: %s", path, exc)
        return _empty_root(project_dir)

    if not root.is_folder:
        # A bare document at the top level is shown inside a synthetic root.
        return BinderItem(
            id="",
            title=Path(project_dir).name,
            type=BinderItemType.FOLDER,
            children=[root],
        )
    return root


def iter_items(root: BinderItem) -> Iterator[BinderItem]:
    """Yield ``root`` and all of its descendants, depth first."""
    yield root
    for child in root.children:
        yield from iter_items(child)


def find_item(root: BinderItem, item_id: str) -> Optional[BinderItem]:
    """Return the item with ``item_id`` in the tree, or ``None``."""
    for item in iter_items(root):
        if item.id == item_id:
            return item
    return None


def find_parent(root: BinderItem, item_id: str) -> Optional[BinderItem]:
    """Return the folder directly containing ``item_id``, or ``None``."""
    for item in iter_items(root):
        if any(child.id == item_id for child in item.children):
            return item
    return None


def load_text_contents(project_dir: Path, root: BinderItem) -> ContentMap:
    """
    Read raw text for every item in the tree that has a content file.

    Args:
        project_dir (Path): Project directory.
        root (BinderItem): Binder tree whose ids select the files to read.

    Returns:
        ContentMap: Mapping from item id to text.
    """
    content_dir = Path(project_dir) / CONTENT_DIRNAME
    contents: ContentMap = {}
    if not content_dir.is_dir():
        return contents

    for item in iter_items(root):
        if not item.id:
            continue
        path = content_dir / f"{item.id}{CONTENT_SUFFIX}"
        if not path.is_file():
            continue
        try:
            contents[item.id] = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logging.warning("Could not read content for %r from %s: %s", item.id, path, exc)
    return contents


def load_project(project_dir: Path) -> ProjectSnapshot:
    """
    Load binder, contents and metadata for a project directory.

    Args:
        project_dir (Path): Project directory.

    Returns:
        ProjectSnapshot: Combined snapshot for the outliner.
    """
    project_dir = Path(project_dir)
    root = load_binder(project_dir)
    return ProjectSnapshot(
        root=root,
        contents=load_text_contents(project_dir, root),
        metadata=load_metadata(project_dir),
    )
