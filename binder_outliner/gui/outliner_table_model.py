"""
Qt table model for displaying a folder's children in a QTableView.

Summary of design:
- Sorting, column visibility and cell text are computed by the
  toolkit-independent ``OutlineTableModel`` in
  ``binder_outliner.core.outline``. This file is a thin adapter that
  exposes its rows through ``QAbstractTableModel`` so that a
  ``QTableView`` can show them.
- Columns of the Qt model are the currently visible outliner columns
  (in declaration order). Rows are the result of ``get_rows()``, which
  is re-run whenever the snapshot or the view state changes.
- Sorting is driven by ``sort()``, which Qt calls when the user clicks a
  header with sorting enabled. We do not use a ``QSortFilterProxyModel``
  because the ordering rules (stable ties, per-column defaults for
  missing metadata) live in the core model.
- The Synopsis column is editable. Edits are not applied to the snapshot
  here; instead an updated ``DocumentMetadata`` is emitted through
  ``metadataChanged`` and the owner is expected to persist it and hand
  back a fresh snapshot.
"""
from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from PySide6.QtCore import QAbstractTableModel, QModelIndex, Qt, Signal
from PySide6.QtGui import QColor, QIcon
from PySide6.QtWidgets import QApplication, QStyle

from binder_outliner.core.models import (
    BinderItem,
    ContentMap,
    DocumentMetadata,
    MetadataMap,
)
from binder_outliner.core.outline import (
    OutlineRow,
    OutlineTableModel,
    OutlineViewState,
    OutlinerColumn,
)

# Text colour for placeholder cells ("-", empty synopsis, "No Status").
MUTED_COLOR = QColor(Qt.gray)

# Role exposing a cell's raw sort key.
SortKeyRole = Qt.UserRole + 1


def _argb_color(argb: int) -> QColor:
    return QColor.fromRgba(argb & 0xFFFFFFFF)


class OutlinerTableModel(QAbstractTableModel):
    """
    Qt table model over the children of one binder folder.

    Emits:
        metadataChanged (str, DocumentMetadata): A cell edit produced a
            new metadata record for the given document id.
        layoutStateChanged (): Visible columns or sort order changed.
    """

    metadataChanged = Signal(str, object)
    layoutStateChanged = Signal()

    def __init__(
        self,
        outline: Optional[OutlineTableModel] = None,
        parent=None,
    ) -> None:
        super().__init__(parent)
        self._outline = outline if outline is not None else OutlineTableModel()
        self._columns: List[OutlinerColumn] = self._outline.visible_columns
        self._rows: List[OutlineRow] = self._outline.get_rows()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    @property
    def outline(self) -> OutlineTableModel:
        return self._outline

    @property
    def state(self) -> OutlineViewState:
        return self._outline.state

    def set_snapshot(
        self,
        folder: BinderItem,
        contents: Optional[ContentMap] = None,
        metadata: Optional[MetadataMap] = None,
    ) -> None:
        """
        Show ``folder``'s children, optionally with new content and
        metadata maps.

        Args:
            folder (BinderItem): Folder whose immediate children become rows.
            contents (Optional[ContentMap]): New id -> text map, or None
                to keep the current one.
            metadata (Optional[MetadataMap]): New id -> metadata map, or
                None to keep the current one.
        """
        self._outline.set_snapshot(folder, contents, metadata)
        self.refresh()

    def refresh(self) -> None:
        """Re-run the projection and reset attached views."""
        self.beginResetModel()
        self._columns = self._outline.visible_columns
        self._rows = self._outline.get_rows()
        self.endResetModel()

    def toggle_column(self, column: OutlinerColumn) -> None:
        self._outline.toggle_column(column)
        self.refresh()
        self.layoutStateChanged.emit()

    def set_visible_columns(self, columns: Iterable[OutlinerColumn]) -> None:
        self._outline.set_visible_columns(columns)
        self.refresh()
        self.layoutStateChanged.emit()

    def column_at(self, section: int) -> Optional[OutlinerColumn]:
        if 0 <= section < len(self._columns):
            return self._columns[section]
        return None

    def section_of(self, column: Optional[OutlinerColumn]) -> int:
        """Return the section showing ``column``, or -1 if it is hidden."""
        if column is None or column not in self._columns:
            return -1
        return self._columns.index(column)

    def item_at(self, row: int) -> Optional[BinderItem]:
        """
        Return the binder item shown at ``row``, or ``None`` if the row
        is out of range.
        """
        if 0 <= row < len(self._rows):
            return self._rows[row].item
        return None

    def row_of(self, item_id: str) -> int:
        for row, outline_row in enumerate(self._rows):
            if outline_row.item.id == item_id:
                return row
        return -1

    def _icon_for(self, item: BinderItem) -> Optional[QIcon]:
        if QApplication.instance() is None:
            return None
        pixmap = QStyle.SP_DirIcon if item.is_folder else QStyle.SP_FileIcon
        return QApplication.style().standardIcon(pixmap)

    # ------------------------------------------------------------------
    # QAbstractTableModel implementation
    # ------------------------------------------------------------------
    def rowCount(self, parent: QModelIndex = QModelIndex()) -> int:  # type: ignore[override]
        if parent.isValid():
            return 0
        return len(self._rows)

    def columnCount(self, parent: QModelIndex = QModelIndex()) -> int:  # type: ignore[override]
        if parent.isValid():
            return 0
        return len(self._columns)

    def data(self, index: QModelIndex, role: int = Qt.DisplayRole):  # type: ignore[override]
        if not index.isValid():
            return None

        row = index.row()
        col = index.column()
        if not (0 <= row < len(self._rows)) or not (0 <= col < len(self._columns)):
            return None

        cell = self._rows[row].cells[col]

        if role in (Qt.DisplayRole, Qt.EditRole):
            return cell.text

        if role == Qt.DecorationRole:
            if cell.column is OutlinerColumn.TITLE:
                return self._icon_for(self._rows[row].item)
            return None

        if role == Qt.ToolTipRole:
            if cell.column is OutlinerColumn.SYNOPSIS and cell.text:
                return cell.text
            return None

        if role == Qt.ForegroundRole:
            if cell.foreground is not None:
                return _argb_color(cell.foreground)
            if cell.muted:
                return MUTED_COLOR
            return None

        if role == Qt.BackgroundRole:
            if cell.color is not None:
                return _argb_color(cell.color)
            return None

        if role == Qt.TextAlignmentRole:
            if cell.column is OutlinerColumn.WORD_COUNT:
                return int(Qt.AlignVCenter | Qt.AlignRight)
            if cell.column is OutlinerColumn.LABEL:
                return int(Qt.AlignCenter)
            return int(Qt.AlignVCenter | Qt.AlignLeft)

        if role == SortKeyRole:
            return cell.value

        return None

    def headerData(
        self,
        section: int,
        orientation: Qt.Orientation,
        role: int = Qt.DisplayRole,
    ):
        """Column headers come from the outliner column table."""
        if orientation == Qt.Horizontal:
            column = self.column_at(section)
            if column is None:
                return None
            if role == Qt.DisplayRole:
                return column.header
            return None

        return super().headerData(section, orientation, role)

    def flags(self, index: QModelIndex):  # type: ignore[override]
        """
        Items are selectable and enabled; Synopsis cells are also
        editable.
        """
        if not index.isValid():
            return Qt.NoItemFlags
        flags = Qt.ItemIsSelectable | Qt.ItemIsEnabled
        if self.column_at(index.column()) is OutlinerColumn.SYNOPSIS:
            flags |= Qt.ItemIsEditable
        return flags

    def setData(self, index: QModelIndex, value, role: int = Qt.EditRole) -> bool:  # type: ignore[override]
        if role != Qt.EditRole or not index.isValid():
            return False
        if self.column_at(index.column()) is not OutlinerColumn.SYNOPSIS:
            return False
        item = self.item_at(index.row())
        if item is None:
            return False

        synopsis = "" if value is None else str(value)
        current = self._outline.metadata_for(item.id)
        if current is not None and current.synopsis == synopsis:
            return False
        base = current if current is not None else DocumentMetadata.empty(item.id)
        updated = replace(base, synopsis=synopsis, modified_at=datetime.now(timezone.utc))
        self.metadataChanged.emit(item.id, updated)
        return True

    def sort(self, column: int, order: Qt.SortOrder = Qt.AscendingOrder) -> None:  # type: ignore[override]
        outliner_column = self.column_at(column)
        if outliner_column is None:
            return
        self._outline.set_sort(outliner_column, order == Qt.AscendingOrder)
        self.refresh()
        self.layoutStateChanged.emit()
