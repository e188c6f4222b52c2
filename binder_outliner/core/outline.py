"""
Toolkit-independent model behind the outliner view.

Summary of design:
- The outliner shows the immediate children of one binder folder as
  rows of a table. Which columns are shown, and which column drives the
  ordering, is kept in a single explicit ``OutlineViewState`` value.
- ``OutlineTableModel.get_rows()`` is a pure projection of that state
  plus a read-only snapshot (folder, text contents, metadata) into a
  list of ``OutlineRow`` objects. Any UI layer can hold the model and
  re-run the projection whenever something changes; the Qt adapter in
  ``binder_outliner.gui.outliner_table_model`` does exactly that.
- Columns form a closed enumeration with a static lookup table
  (``COLUMN_SPECS``) for header text and default width. Sort keys and
  cell text are derived per column in ``_sort_key`` / ``_make_cell``.
- Missing entries in the content or metadata mappings are never an
  error: each column documents a default (empty string, ``NO_STATUS``,
  zero words, the Unix epoch).

Hidden sort column policy: when the column currently used for sorting
is hidden, sorting falls back to Title and keeps the current direction.
``set_sort`` itself accepts any column, visible or not.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set, Tuple

from binder_outliner.core.models import (
    BinderItem,
    BinderItemType,
    ContentMap,
    DocumentMetadata,
    DocumentStatus,
    MetadataMap,
)


class OutlinerColumn(Enum):
    TITLE = "title"
    SYNOPSIS = "synopsis"
    STATUS = "status"
    LABEL = "label"
    WORD_COUNT = "word_count"
    MODIFIED = "modified"

    @property
    def header(self) -> str:
        return COLUMN_SPECS[self].header

    @property
    def default_width(self) -> int:
        return COLUMN_SPECS[self].default_width


@dataclass(frozen=True)
class ColumnSpec:
    header: str
    default_width: int


COLUMN_SPECS: Dict[OutlinerColumn, ColumnSpec] = {
    OutlinerColumn.TITLE: ColumnSpec("Title", 200),
    OutlinerColumn.SYNOPSIS: ColumnSpec("Synopsis", 250),
    OutlinerColumn.STATUS: ColumnSpec("Status", 100),
    OutlinerColumn.LABEL: ColumnSpec("Label", 80),
    OutlinerColumn.WORD_COUNT: ColumnSpec("Words", 70),
    OutlinerColumn.MODIFIED: ColumnSpec("Modified", 120),
}

DEFAULT_VISIBLE_COLUMNS = frozenset(
    {
        OutlinerColumn.TITLE,
        OutlinerColumn.SYNOPSIS,
        OutlinerColumn.STATUS,
        OutlinerColumn.LABEL,
        OutlinerColumn.WORD_COUNT,
    }
)

# Foreground colours (ARGB) used on top of a label's background.
DARK_FOREGROUND = 0xDD000000
LIGHT_FOREGROUND = 0xFFFFFFFF

# Sort key for documents without a modification time.
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Placeholder text for cells with nothing to show.
PLACEHOLDER = "-"

_WHITESPACE = re.compile(r"\s+")


# ----------------------------------------------------------------------
# Pure helpers
# ----------------------------------------------------------------------
def word_count(text: str) -> int:
    """
    Count whitespace-delimited words in ``text``.

    Leading and trailing whitespace is ignored and runs of whitespace
    count as a single separator, so ``"  a   b  "`` has two words.
    """
    if not text:
        return 0
    return len([w for w in _WHITESPACE.split(text.strip()) if w])


def relative_luminance(argb: int) -> float:
    """
    Return the sRGB relative luminance (0.0 to 1.0) of an ARGB colour.

    The alpha channel is ignored.
    """

    def _linear(channel: int) -> float:
        c = channel / 255.0
        if c <= 0.03928:
            return c / 12.92
        return ((c + 0.055) / 1.055) ** 2.4

    r = (argb >> 16) & 0xFF
    g = (argb >> 8) & 0xFF
    b = argb & 0xFF
    return 0.2126 * _linear(r) + 0.7152 * _linear(g) + 0.0722 * _linear(b)


def contrast_color(argb: int) -> int:
    """Pick a readable foreground colour for text drawn on ``argb``."""
    if relative_luminance(argb) > 0.5:
        return DARK_FOREGROUND
    return LIGHT_FOREGROUND


def format_date(value: datetime) -> str:
    """Short ``M/D/YYYY`` date used in the Modified column."""
    return f"{value.month}/{value.day}/{value.year}"


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps are taken to be UTC so they compare with aware ones.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ----------------------------------------------------------------------
# View state and rows
# ----------------------------------------------------------------------
@dataclass
class OutlineViewState:
    """
    Column visibility and sort settings for one outliner.

    ``visible_columns`` always contains ``OutlinerColumn.TITLE``.
    """

    visible_columns: Set[OutlinerColumn] = field(
        default_factory=lambda: set(DEFAULT_VISIBLE_COLUMNS)
    )
    sort_column: Optional[OutlinerColumn] = OutlinerColumn.TITLE
    sort_ascending: bool = True

    def ordered_columns(self) -> List[OutlinerColumn]:
        """Visible columns in display (declaration) order."""
        return [c for c in OutlinerColumn if c in self.visible_columns]


@dataclass(frozen=True)
class OutlineCell:
    column: OutlinerColumn

    #: Comparable sort key for this cell.
    value: object

    #: Display-ready text.
    text: str

    #: True when the cell shows a placeholder or "nothing set" value.
    muted: bool = False

    #: Label column only: background and contrasting foreground (ARGB).
    color: Optional[int] = None
    foreground: Optional[int] = None


@dataclass(frozen=True)
class OutlineRow:
    item: BinderItem
    cells: Tuple[OutlineCell, ...]

    @property
    def columns(self) -> List[OutlinerColumn]:
        return [cell.column for cell in self.cells]

    def cell(self, column: OutlinerColumn) -> Optional[OutlineCell]:
        for candidate in self.cells:
            if candidate.column is column:
                return candidate
        return None


# ----------------------------------------------------------------------
# Model
# ----------------------------------------------------------------------
class OutlineTableModel:
    """
    Sortable, column-filtered projection of a folder's children.

    The model never mutates the folder, the content mapping or the
    metadata mapping it is given. It only owns its ``OutlineViewState``.
    """

    def __init__(
        self,
        folder: Optional[BinderItem] = None,
        contents: Optional[ContentMap] = None,
        metadata: Optional[MetadataMap] = None,
        state: Optional[OutlineViewState] = None,
    ) -> None:
        self._folder: BinderItem = folder or BinderItem(
            id="", title="", type=BinderItemType.FOLDER
        )
        self._contents: ContentMap = contents if contents is not None else {}
        self._metadata: MetadataMap = metadata if metadata is not None else {}
        self.state = state if state is not None else OutlineViewState()

    # ------------------------------------------------------------------
    # Input snapshot
    # ------------------------------------------------------------------
    @property
    def folder(self) -> BinderItem:
        return self._folder

    @property
    def is_empty(self) -> bool:
        return not self._folder.children

    def set_snapshot(
        self,
        folder: BinderItem,
        contents: Optional[ContentMap] = None,
        metadata: Optional[MetadataMap] = None,
    ) -> None:
        """Replace the folder and, optionally, the content/metadata maps."""
        self._folder = folder
        if contents is not None:
            self._contents = contents
        if metadata is not None:
            self._metadata = metadata

    def metadata_for(self, item_id: str) -> Optional[DocumentMetadata]:
        return self._metadata.get(item_id)

    def content_for(self, item_id: str) -> str:
        return self._contents.get(item_id) or ""

    # ------------------------------------------------------------------
    # View state mutations
    # ------------------------------------------------------------------
    @property
    def visible_columns(self) -> List[OutlinerColumn]:
        return self.state.ordered_columns()

    def set_visible_columns(self, columns: Iterable[OutlinerColumn]) -> None:
        """Replace the visible set. Title is always kept."""
        visible = set(columns)
        visible.add(OutlinerColumn.TITLE)
        self.state.visible_columns = visible
        self._reset_hidden_sort()

    def toggle_column(self, column: OutlinerColumn) -> None:
        """Show or hide ``column``. Toggling Title does nothing."""
        if column is OutlinerColumn.TITLE:
            return
        if column in self.state.visible_columns:
            self.state.visible_columns.discard(column)
        else:
            self.state.visible_columns.add(column)
        self._reset_hidden_sort()

    def set_sort(self, column: Optional[OutlinerColumn], ascending: bool = True) -> None:
        self.state.sort_column = column
        self.state.sort_ascending = ascending

    def _reset_hidden_sort(self) -> None:
        sort_column = self.state.sort_column
        if sort_column is not None and sort_column not in self.state.visible_columns:
            self.state.sort_column = OutlinerColumn.TITLE

    # ------------------------------------------------------------------
    # Projection
    # ------------------------------------------------------------------
    def sorted_items(self) -> List[BinderItem]:
        """Children of the folder in current sort order."""
        items = list(self._folder.children)
        column = self.state.sort_column
        if column is None:
            return items
        # sorted() is stable and keeps equal keys in tree order even
        # with reverse=True.
        return sorted(
            items,
            key=lambda item: self._sort_key(column, item),
            reverse=not self.state.sort_ascending,
        )

    def get_rows(self) -> List[OutlineRow]:
        columns = self.visible_columns
        return [
            OutlineRow(
                item=item,
                cells=tuple(self._make_cell(column, item) for column in columns),
            )
            for item in self.sorted_items()
        ]

    def _sort_key(self, column: OutlinerColumn, item: BinderItem):
        meta = self._metadata.get(item.id)
        if column is OutlinerColumn.TITLE:
            return item.title
        if column is OutlinerColumn.SYNOPSIS:
            return meta.synopsis if meta is not None else ""
        if column is OutlinerColumn.STATUS:
            return meta.status.ordinal if meta is not None else DocumentStatus.NO_STATUS.ordinal
        if column is OutlinerColumn.LABEL:
            if meta is not None and meta.label is not None:
                return meta.label.name
            return ""
        if column is OutlinerColumn.WORD_COUNT:
            return word_count(self.content_for(item.id))
        if column is OutlinerColumn.MODIFIED:
            if meta is not None and meta.modified_at is not None:
                return _as_utc(meta.modified_at)
            return EPOCH
        raise ValueError(f"Unknown outliner column: {column!r}")

    def _make_cell(self, column: OutlinerColumn, item: BinderItem) -> OutlineCell:
        meta = self._metadata.get(item.id)
        key = self._sort_key(column, item)

        if column is OutlinerColumn.TITLE:
            return OutlineCell(column, key, item.title)

        if column is OutlinerColumn.SYNOPSIS:
            return OutlineCell(column, key, key, muted=not key)

        if column is OutlinerColumn.STATUS:
            if meta is None:
                return OutlineCell(column, key, PLACEHOLDER, muted=True)
            return OutlineCell(
                column,
                key,
                meta.status.display_name,
                muted=meta.status is DocumentStatus.NO_STATUS,
            )

        if column is OutlinerColumn.LABEL:
            if meta is None or meta.label is None:
                return OutlineCell(column, key, PLACEHOLDER, muted=True)
            color = meta.label.color_value
            return OutlineCell(
                column,
                key,
                meta.label.name,
                color=color,
                foreground=contrast_color(color),
            )

        if column is OutlinerColumn.WORD_COUNT:
            return OutlineCell(column, key, str(key))

        # OutlinerColumn.MODIFIED
        if meta is None or meta.modified_at is None:
            return OutlineCell(column, key, PLACEHOLDER, muted=True)
        return OutlineCell(column, key, format_date(meta.modified_at))
