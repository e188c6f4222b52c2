"""
Document metadata storage for a binder project.

Design overview
---------------
The core data model (see ``binder_outliner.core.models``) keeps the
binder tree (ids, titles, kinds) separate from per-document metadata
(label, status, synopsis, notes, timestamps). The outliner reads the
metadata as a plain ``MetadataMap`` snapshot; this module is the
provider behind that snapshot and the sink for "metadata changed"
notifications coming back from the outliner.

Metadata lives in ``metadata.json`` inside the project directory:

.. code-block:: json

    {
      "version": 1,
      "documents": {
        "chapter-1": {
          "documentId": "chapter-1",
          "label": {"name": "Red", "colorValue": 4293212469},
          "status": "first_draft",
          "synopsis": "Our hero leaves home.",
          "notes": "",
          "wordCountTarget": 2000,
          "includeInCompile": true,
          "customIcon": null,
          "createdAt": "2024-03-01T09:30:00",
          "modifiedAt": "2024-03-04T18:02:11"
        }
      }
    }

Reading is tolerant: a missing or unreadable file is an empty map, and
malformed entries are skipped with a warning so that one bad record does
not hide the rest of the project. Writing is atomic (temporary file plus
rename).
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from binder_outliner.core.models import (
    DocumentLabel,
    DocumentMetadata,
    DocumentStatus,
    MetadataMap,
)

METADATA_FILENAME = "metadata.json"
METADATA_VERSION = 1


def metadata_path(project_dir: Path) -> Path:
    """Return the metadata JSON path for ``project_dir``."""
    return Path(project_dir) / METADATA_FILENAME


# ---------------------------------------------------------------------------
# Record <-> dict conversion
# ---------------------------------------------------------------------------


def _status_to_str(status: DocumentStatus) -> str:
    return status.name.lower()


def _status_from_str(raw: Any) -> DocumentStatus:
    # Unknown or missing statuses degrade to "No Status".
    if isinstance(raw, str):
        try:
            return DocumentStatus[raw.upper()]
        except KeyError:
            pass
    return DocumentStatus.NO_STATUS


def _datetime_from_str(raw: Any) -> Optional[datetime]:
    if not isinstance(raw, str) or not raw:
        return None
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        return None


def _label_from_dict(raw: Any) -> Optional[DocumentLabel]:
    if not isinstance(raw, Mapping):
        return None
    name = raw.get("name")
    color = raw.get("colorValue")
    if not isinstance(name, str) or not isinstance(color, int):
        return None
    return DocumentLabel(name=name, color_value=color)


def metadata_to_dict(meta: DocumentMetadata) -> Dict[str, Any]:
    """
    Convert a ``DocumentMetadata`` into a JSON-serializable dict.

    Args:
        meta (DocumentMetadata): Record to convert.

    Returns:
        Dict[str, Any]: Plain mapping using the on-disk key names.
    """
    return {
        "documentId": meta.document_id,
        "label": (
            {"name": meta.label.name, "colorValue": meta.label.color_value}
            if meta.label is not None
            else None
        ),
        "status": _status_to_str(meta.status),
        "synopsis": meta.synopsis,
        "notes": meta.notes,
        "wordCountTarget": meta.word_count_target,
        "includeInCompile": bool(meta.include_in_compile),
        "customIcon": meta.custom_icon,
        "createdAt": meta.created_at.isoformat() if meta.created_at else None,
        "modifiedAt": meta.modified_at.isoformat() if meta.modified_at else None,
    }


def metadata_from_dict(data: Mapping, document_id: Optional[str] = None) -> DocumentMetadata:
    """
    Construct a ``DocumentMetadata`` from a decoded JSON mapping.

    Missing fields are filled with defaults so older files keep loading
    when new fields are added.

    Args:
        data (Mapping): Raw mapping loaded from JSON.
        document_id (Optional[str]): Id to use when ``data`` does not
            carry a ``documentId`` (e.g. the key it was stored under).

    Returns:
        DocumentMetadata: The decoded record.

    Raises:
        ValueError: If no document id can be determined.
    """
    doc_id = data.get("documentId") or document_id
    if not isinstance(doc_id, str) or not doc_id:
        raise ValueError("metadata entry has no documentId")

    target = data.get("wordCountTarget")
    return DocumentMetadata(
        document_id=doc_id,
        label=_label_from_dict(data.get("label")),
        status=_status_from_str(data.get("status")),
        synopsis=str(data.get("synopsis") or ""),
        notes=str(data.get("notes") or ""),
        word_count_target=target if isinstance(target, int) else None,
        include_in_compile=bool(data.get("includeInCompile", True)),
        custom_icon=data.get("customIcon") if isinstance(data.get("customIcon"), str) else None,
        created_at=_datetime_from_str(data.get("createdAt")),
        modified_at=_datetime_from_str(data.get("modifiedAt")),
    )


# ---------------------------------------------------------------------------
# Load / save
# ---------------------------------------------------------------------------


def _decode_documents(raw: Mapping, source: Path) -> MetadataMap:
    documents = raw.get("documents", {})
    result: MetadataMap = {}
    if not isinstance(documents, Mapping):
        return result

    for doc_id, entry in documents.items():
        if not isinstance(doc_id, str) or not isinstance(entry, Mapping):
            logging.warning(
                "Skipping malformed metadata entry in %s: %r", source, doc_id
            )
            continue
        try:
            result[doc_id] = metadata_from_dict(entry, document_id=doc_id)
        except (ValueError, TypeError) as exc:
            logging.warning(
                "Skipping malformed metadata entry in %s: %r (error: %s)",
                source,
                doc_id,
                exc,
            )
    return result


def load_metadata(project_dir: Path) -> MetadataMap:
    """
    Load the metadata map for a project.

    Args:
        project_dir (Path): Project directory containing ``metadata.json``.

    Returns:
        MetadataMap: Mapping from document id to metadata. Empty if the
        file is missing or cannot be parsed.
    """
    path = metadata_path(project_dir)
    if not path.exists():
        return {}

    try:
        with path.open("r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        logging.warning("Could not read metadata file %s: %s", path, exc)
        return {}

    if not isinstance(raw, Mapping):
        logging.warning("Ignoring metadata file %s: top level is not an object", path)
        return {}

    return _decode_documents(raw, path)


def save_metadata(metadata: MetadataMap, project_dir: Path) -> None:
    """
    Atomically write the metadata map for a project.

    Args:
        metadata (MetadataMap): Full map to persist.
        project_dir (Path): Project directory; created if missing.
    """
    path = metadata_path(project_dir)
    path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "version": METADATA_VERSION,
        "documents": {
            doc_id: metadata_to_dict(meta) for doc_id, meta in metadata.items()
        },
    }

    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(data, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    tmp.replace(path)


def update_metadata(
    document_id: str, metadata: DocumentMetadata, project_dir: Path
) -> MetadataMap:
    """
    Store a changed metadata record and return the updated map.

    This is the receiving end of the outliner's "metadata changed"
    notification.

    Args:
        document_id (str): Id of the edited document.
        metadata (DocumentMetadata): New record for that document.
        project_dir (Path): Project directory.

    Returns:
        MetadataMap: The full map after the update.
    """
    current = load_metadata(project_dir)
    current[document_id] = metadata
    save_metadata(current, project_dir)
    return current


@dataclass
class MetadataFileInfo:
    """Lightweight description of the metadata file, used for change checks."""

    path: Path
    mtime: Optional[float]


def metadata_file_info(project_dir: Path) -> MetadataFileInfo:
    """Return the metadata path and its modification time (``None`` if absent)."""
    path = metadata_path(project_dir)
    try:
        mtime = path.stat().st_mtime
    except OSError:
        mtime = None
    return MetadataFileInfo(path=path, mtime=mtime)
