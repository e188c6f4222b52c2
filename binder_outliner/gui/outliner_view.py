"""
Outliner widget: a spreadsheet-like view of one binder folder.

Design
------
The widget stacks a small toolbar on top of either a ``QTableView`` or an
empty-state label:

- Toolbar: folder icon and title, an item count, and a "columns" button
  whose menu toggles column visibility. The Title entry is always
  checked and disabled because the Title column cannot be hidden.
- Table: backed by ``OutlinerTableModel``. Clicking a header sorts by
  that column; clicking the current sort column again flips the
  direction.
- Empty state: shown instead of the table when the folder has no
  children.

Emits:
    itemSelected (BinderItem): The current row changed.
    itemActivated (BinderItem): A row was double-clicked.
    metadataChanged (str, DocumentMetadata): A cell edit produced new
        metadata for a document. The owner persists it and calls
        ``set_snapshot`` with the refreshed maps.
"""
from __future__ import annotations

from typing import Dict, Optional

from PySide6.QtCore import QModelIndex, Qt, Signal
from PySide6.QtGui import QAction
from PySide6.QtWidgets import (
    QAbstractItemView,
    QHBoxLayout,
    QHeaderView,
    QLabel,
    QMenu,
    QStackedWidget,
    QStyle,
    QTableView,
    QToolButton,
    QVBoxLayout,
    QWidget,
)

from binder_outliner.core.models import BinderItem, ContentMap, MetadataMap
from binder_outliner.core.outline import OutlineTableModel, OutlinerColumn
from binder_outliner.gui.outliner_table_model import OutlinerTableModel

EMPTY_FOLDER_TEXT = "No documents in this folder"


class OutlinerView(QWidget):
    """Toolbar + sortable table over the children of one folder."""

    itemSelected = Signal(object)
    itemActivated = Signal(object)
    metadataChanged = Signal(str, object)

    def __init__(
        self,
        outline: Optional[OutlineTableModel] = None,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)

        self._model = OutlinerTableModel(outline, self)
        self._model.metadataChanged.connect(self.metadataChanged)

        # Toolbar.
        self._folder_icon = QLabel(self)
        icon = self.style().standardIcon(QStyle.SP_DirIcon)
        self._folder_icon.setPixmap(icon.pixmap(18, 18))
        self._title_label = QLabel(self)
        self._title_label.setStyleSheet("font-weight: bold;")
        self._count_label = QLabel(self)
        self._count_label.setStyleSheet("color: gray;")

        self._column_menu = QMenu(self)
        self._column_actions: Dict[OutlinerColumn, QAction] = {}
        for column in OutlinerColumn:
            action = QAction(column.header, self._column_menu)
            action.setCheckable(True)
            action.setData(column.value)
            action.setEnabled(column is not OutlinerColumn.TITLE)
            action.triggered.connect(
                lambda _checked=False, c=column: self._model.toggle_column(c)
            )
            self._column_menu.addAction(action)
            self._column_actions[column] = action

        self._column_button = QToolButton(self)
        self._column_button.setText("Columns")
        self._column_button.setToolTip("Show/Hide Columns")
        self._column_button.setPopupMode(QToolButton.InstantPopup)
        self._column_button.setMenu(self._column_menu)

        toolbar = QWidget(self)
        toolbar_layout = QHBoxLayout(toolbar)
        toolbar_layout.setContentsMargins(12, 8, 12, 8)
        toolbar_layout.addWidget(self._folder_icon)
        toolbar_layout.addWidget(self._title_label)
        toolbar_layout.addWidget(self._count_label)
        toolbar_layout.addStretch(1)
        toolbar_layout.addWidget(self._column_button)

        # Table.
        self._table = QTableView(self)
        self._table.setModel(self._model)
        self._table.setSelectionBehavior(QAbstractItemView.SelectRows)
        self._table.setSelectionMode(QAbstractItemView.SingleSelection)
        self._table.setEditTriggers(
            QAbstractItemView.EditKeyPressed | QAbstractItemView.SelectedClicked
        )
        self._table.verticalHeader().setVisible(False)
        self._table.setWordWrap(True)
        header = self._table.horizontalHeader()
        header.setSectionsClickable(True)
        header.setSortIndicatorShown(True)
        header.setSectionResizeMode(QHeaderView.Interactive)
        header.setStretchLastSection(True)
        header.sectionClicked.connect(self._on_header_clicked)
        self._table.doubleClicked.connect(self._on_double_clicked)
        self._connect_selection_model()
        self._column_widths: Dict[OutlinerColumn, int] = {}
        # After setModel: the header resets its sections before widths are applied.
        self._model.modelAboutToBeReset.connect(self._remember_column_widths)
        self._model.modelReset.connect(self._on_model_reset)

        # Empty state.
        self._empty_label = QLabel(EMPTY_FOLDER_TEXT, self)
        self._empty_label.setAlignment(Qt.AlignCenter)
        self._empty_label.setStyleSheet("color: gray; font-size: 16px;")

        self._stack = QStackedWidget(self)
        self._stack.addWidget(self._table)
        self._stack.addWidget(self._empty_label)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)
        layout.addWidget(toolbar)
        layout.addWidget(self._stack, 1)

        self._on_model_reset()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    @property
    def model(self) -> OutlinerTableModel:
        return self._model

    @property
    def table(self) -> QTableView:
        return self._table

    @property
    def column_actions(self) -> Dict[OutlinerColumn, QAction]:
        return dict(self._column_actions)

    def is_showing_empty_state(self) -> bool:
        return self._stack.currentWidget() is self._empty_label

    def set_snapshot(
        self,
        folder: BinderItem,
        contents: Optional[ContentMap] = None,
        metadata: Optional[MetadataMap] = None,
    ) -> None:
        """Display ``folder`` using the given content and metadata maps."""
        self._model.set_snapshot(folder, contents, metadata)

    def select_item(self, item_id: Optional[str]) -> None:
        """Highlight the row for ``item_id`` (or clear the selection)."""
        if not item_id:
            self._table.clearSelection()
            return
        row = self._model.row_of(item_id)
        if row < 0:
            self._table.clearSelection()
            return
        self._table.setCurrentIndex(self._model.index(row, 0))

    def selected_item(self) -> Optional[BinderItem]:
        index = self._table.currentIndex()
        if not index.isValid():
            return None
        return self._model.item_at(index.row())

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _connect_selection_model(self) -> None:
        sel_model = self._table.selectionModel()
        if sel_model is not None:
            sel_model.currentRowChanged.connect(self._on_current_row_changed)

    def _remember_column_widths(self) -> None:
        # Runs before the reset, while sections still map to the old columns.
        header = self._table.horizontalHeader()
        last = self._model.columnCount() - 1
        for section in range(self._model.columnCount()):
            if section == last and header.stretchLastSection():
                continue
            column = self._model.column_at(section)
            if column is not None:
                self._column_widths[column] = header.sectionSize(section)

    def _on_model_reset(self) -> None:
        outline = self._model.outline
        folder = outline.folder
        self._title_label.setText(folder.title)
        self._count_label.setText(f"({len(folder.children)} items)")

        visible = set(outline.visible_columns)
        for column, action in self._column_actions.items():
            action.setChecked(column in visible)

        header = self._table.horizontalHeader()
        for section in range(self._model.columnCount()):
            column = self._model.column_at(section)
            if column is not None:
                header.resizeSection(section, self._column_widths.get(column, column.default_width))

        state = self._model.state
        section = self._model.section_of(state.sort_column)
        if section >= 0:
            order = Qt.AscendingOrder if state.sort_ascending else Qt.DescendingOrder
            header.setSortIndicator(section, order)
        else:
            header.setSortIndicator(-1, Qt.AscendingOrder)

        self._stack.setCurrentWidget(
            self._empty_label if outline.is_empty else self._table
        )

    def _on_header_clicked(self, section: int) -> None:
        column = self._model.column_at(section)
        if column is None:
            return
        state = self._model.state
        if state.sort_column is column:
            ascending = not state.sort_ascending
        else:
            ascending = True
        order = Qt.AscendingOrder if ascending else Qt.DescendingOrder
        self._model.sort(section, order)

    def _on_current_row_changed(self, current: QModelIndex, previous: QModelIndex) -> None:
        if not current.isValid():
            return
        item = self._model.item_at(current.row())
        if item is not None:
            self.itemSelected.emit(item)

    def _on_double_clicked(self, index: QModelIndex) -> None:
        if not index.isValid():
            return
        item = self._model.item_at(index.row())
        if item is not None:
            self.itemActivated.emit(item)
