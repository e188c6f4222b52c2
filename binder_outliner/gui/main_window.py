"""
Main window for the Binder Outliner GUI.

Design overview
---------------

Projects
--------
- A project is a directory holding ``binder.json`` (the document tree),
  ``content/<id>.txt`` (raw text per document) and ``metadata.json``
  (label, status, synopsis, timestamps per document). See
  ``binder_outliner.core.binder_index`` and
  ``binder_outliner.core.metadata_store``.
- The last opened project and a short recent-projects list are kept in
  the bootstrap config (``~/.binder_outliner/config.json``).

Views and models
----------------
- The central widget is an ``OutlinerView`` showing the children of the
  current folder. It starts at the binder root.
- Double-clicking a folder row descends into it; the "Up" action
  returns to the parent folder. Double-clicking a document only updates
  the status bar, since text editing is out of scope here.
- Synopsis edits in the table are written through
  ``metadata_store.update_metadata`` and the view is refreshed from the
  returned map.

View state
----------
- Visible columns and sort order are per-machine UI preferences and are
  stored in ``QSettings`` rather than in the project directory. They are
  restored on startup and saved whenever they change.

External changes
----------------
- Before applying an edit the window compares the metadata file's
  modification time with the one seen at load time. If the file was
  changed by another program the user is asked whether to reload first.
  On reload the edited synopsis is reapplied to the fresh record so
  that other fields changed on disk are kept.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from PySide6.QtCore import QSettings
from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtWidgets import (
    QApplication,
    QFileDialog,
    QMainWindow,
    QMessageBox,
    QStatusBar,
    QStyle,
    QWidget,
)

from binder_outliner.core.binder_index import (
    ProjectSnapshot,
    find_item,
    find_parent,
    load_project,
)
from binder_outliner.core.config import (
    SETTINGS_APPLICATION,
    SETTINGS_ORGANIZATION,
    get_last_project_dir,
    set_last_project_dir,
)
from binder_outliner.core.metadata_store import metadata_file_info, update_metadata
from binder_outliner.core.models import BinderItem, DocumentMetadata
from binder_outliner.core.outline import (
    OutlineTableModel,
    OutlineViewState,
    OutlinerColumn,
)
from binder_outliner.gui.outliner_view import OutlinerView

# QSettings keys for the outliner view state.
VISIBLE_COLUMNS_KEY = "outliner/visible_columns"
SORT_COLUMN_KEY = "outliner/sort_column"
SORT_ASCENDING_KEY = "outliner/sort_ascending"


def _column_from_str(raw) -> Optional[OutlinerColumn]:
    try:
        return OutlinerColumn(raw)
    except ValueError:
        return None


def load_view_state(settings: QSettings) -> OutlineViewState:
    """
    Restore outliner view state from ``settings``.

    Unknown column names are ignored; missing keys fall back to the
    default view state.
    """
    state = OutlineViewState()

    raw_columns = settings.value(VISIBLE_COLUMNS_KEY)
    if raw_columns is not None:
        if isinstance(raw_columns, str):
            # QSettings collapses single-element lists into a string.
            raw_columns = [raw_columns] if raw_columns else []
        columns = {c for c in (_column_from_str(v) for v in raw_columns) if c is not None}
        columns.add(OutlinerColumn.TITLE)
        state.visible_columns = columns

    if settings.contains(SORT_COLUMN_KEY):
        raw_sort = settings.value(SORT_COLUMN_KEY, "")
        state.sort_column = _column_from_str(raw_sort) if raw_sort else None

    ascending = settings.value(SORT_ASCENDING_KEY, True)
    if isinstance(ascending, str):
        ascending = ascending.lower() in ("true", "1")
    state.sort_ascending = bool(ascending)

    if state.sort_column is not None and state.sort_column not in state.visible_columns:
        state.sort_column = OutlinerColumn.TITLE

    return state


def save_view_state(settings: QSettings, state: OutlineViewState) -> None:
    """Persist outliner view state to ``settings``."""
    settings.setValue(
        VISIBLE_COLUMNS_KEY, [c.value for c in state.ordered_columns()]
    )
    settings.setValue(
        SORT_COLUMN_KEY, state.sort_column.value if state.sort_column else ""
    )
    settings.setValue(SORT_ASCENDING_KEY, bool(state.sort_ascending))


class MainWindow(QMainWindow):
    """
    Main window for the Binder Outliner GUI.

    Holds the current ``ProjectSnapshot`` and the folder being shown,
    and wires the ``OutlinerView`` signals to navigation and metadata
    persistence.
    """

    def __init__(
        self,
        settings: Optional[QSettings] = None,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self.setWindowTitle("Binder Outliner")

        self._settings = (
            settings
            if settings is not None
            else QSettings(SETTINGS_ORGANIZATION, SETTINGS_APPLICATION)
        )

        self._project_dir: Optional[Path] = None
        self._snapshot: Optional[ProjectSnapshot] = None
        self._current_folder: Optional[BinderItem] = None
        self._metadata_mtime: Optional[float] = None

        outline = OutlineTableModel(state=load_view_state(self._settings))
        self._outliner = OutlinerView(outline, self)
        self._outliner.itemSelected.connect(self._on_item_selected)
        self._outliner.itemActivated.connect(self._on_item_activated)
        self._outliner.metadataChanged.connect(self._on_metadata_changed)
        self._outliner.model.layoutStateChanged.connect(self._on_view_state_changed)
        self.setCentralWidget(self._outliner)

        self._create_actions()
        self._create_toolbar()
        self._create_menus()

        self.setStatusBar(QStatusBar(self))
        self._update_actions()
        self.resize(1000, 650)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    @property
    def outliner(self) -> OutlinerView:
        return self._outliner

    @property
    def project_dir(self) -> Optional[Path]:
        return self._project_dir

    @property
    def current_folder(self) -> Optional[BinderItem]:
        return self._current_folder

    def initialize_data(self) -> None:
        """Reopen the last project, if one is remembered and still exists."""
        last = get_last_project_dir()
        if last is not None and last.is_dir():
            self.open_project(last)

    def open_project(self, project_dir: Path) -> bool:
        """
        Load ``project_dir`` and show its binder root.

        Returns:
            bool: True if the project was loaded.
        """
        project_dir = Path(project_dir).expanduser()
        if not project_dir.is_dir():
            QMessageBox.warning(
                self,
                "Open project",
                f"Project folder does not exist:\n{project_dir}",
            )
            return False

        self._project_dir = project_dir
        self._load_snapshot()
        self._show_folder(self._snapshot.root)
        self.setWindowTitle(f"Binder Outliner - {project_dir.name}")
        try:
            set_last_project_dir(project_dir)
        except OSError as exc:
            logging.warning("Could not remember last project %s: %s", project_dir, exc)
        self.statusBar().showMessage(f"Opened {project_dir}", 5000)
        return True

    def show_folder(self, folder_id: str) -> bool:
        """Show the folder with ``folder_id``; False if it does not exist."""
        if self._snapshot is None:
            return False
        item = find_item(self._snapshot.root, folder_id)
        if item is None or not item.is_folder:
            return False
        self._show_folder(item)
        return True

    # ------------------------------------------------------------------
    # Actions, toolbar, menus
    # ------------------------------------------------------------------
    def _create_actions(self) -> None:
        style = self.style()

        self._open_action = QAction(style.standardIcon(QStyle.SP_DialogOpenButton), "Open Project…", self)
        self._open_action.setShortcut(QKeySequence.Open)
        self._open_action.triggered.connect(self._on_open_project)

        self._reload_action = QAction(style.standardIcon(QStyle.SP_BrowserReload), "Reload", self)
        self._reload_action.setShortcut(QKeySequence.Refresh)
        self._reload_action.triggered.connect(self._on_reload)

        self._up_action = QAction(style.standardIcon(QStyle.SP_FileDialogToParent), "Up", self)
        self._up_action.setToolTip("Show the parent folder")
        self._up_action.triggered.connect(self._on_up)

        self._quit_action = QAction("Quit", self)
        self._quit_action.setShortcut(QKeySequence.Quit)
        self._quit_action.triggered.connect(self.close)

    def _create_toolbar(self) -> None:
        toolbar = self.addToolBar("Main")
        toolbar.setObjectName("MainToolbar")
        toolbar.addAction(self._open_action)
        toolbar.addAction(self._reload_action)
        toolbar.addSeparator()
        toolbar.addAction(self._up_action)

    def _create_menus(self) -> None:
        file_menu = self.menuBar().addMenu("&File")
        file_menu.addAction(self._open_action)
        file_menu.addAction(self._reload_action)
        file_menu.addSeparator()
        file_menu.addAction(self._quit_action)

        view_menu = self.menuBar().addMenu("&View")
        view_menu.addAction(self._up_action)

    def _update_actions(self) -> None:
        has_project = self._snapshot is not None
        self._reload_action.setEnabled(has_project)
        self._up_action.setEnabled(self._parent_of_current() is not None)

    # ------------------------------------------------------------------
    # Data loading
    # ------------------------------------------------------------------
    def _load_snapshot(self) -> None:
        assert self._project_dir is not None
        self._snapshot = load_project(self._project_dir)
        self._metadata_mtime = metadata_file_info(self._project_dir).mtime

    def _show_folder(self, folder: BinderItem) -> None:
        self._current_folder = folder
        snapshot = self._snapshot
        self._outliner.set_snapshot(
            folder,
            snapshot.contents if snapshot else {},
            snapshot.metadata if snapshot else {},
        )
        self._update_actions()

    def _parent_of_current(self) -> Optional[BinderItem]:
        if self._snapshot is None or self._current_folder is None:
            return None
        if self._current_folder is self._snapshot.root:
            return None
        return find_parent(self._snapshot.root, self._current_folder.id)

    def _metadata_changed_externally(self) -> bool:
        if self._project_dir is None:
            return False
        return metadata_file_info(self._project_dir).mtime != self._metadata_mtime

    # ------------------------------------------------------------------
    # Slots
    # ------------------------------------------------------------------
    def _on_open_project(self) -> None:
        start = str(self._project_dir) if self._project_dir else str(Path.home())
        chosen = QFileDialog.getExistingDirectory(self, "Open Project", start)
        if chosen:
            self.open_project(Path(chosen))

    def _on_reload(self) -> None:
        if self._project_dir is None:
            return
        folder_id = self._current_folder.id if self._current_folder else None
        self._load_snapshot()
        if folder_id is None or not self.show_folder(folder_id):
            self._show_folder(self._snapshot.root)
        self.statusBar().showMessage("Reloaded project from disk", 3000)

    def _on_up(self) -> None:
        parent = self._parent_of_current()
        if parent is not None:
            self._show_folder(parent)

    def _on_item_selected(self, item: BinderItem) -> None:
        self.statusBar().showMessage(item.title, 3000)

    def _on_item_activated(self, item: BinderItem) -> None:
        if item.is_folder:
            self._show_folder(item)
            return
        self.statusBar().showMessage(f"Opened “{item.title}”", 3000)

    def _on_metadata_changed(self, document_id: str, metadata: DocumentMetadata) -> None:
        if self._project_dir is None or self._snapshot is None:
            return

        if self._metadata_changed_externally():
            answer = QMessageBox.question(
                self,
                "Metadata changed on disk",
                "The project's metadata file was changed outside this window.\n"
                "Reload it before applying your edit?",
            )
            if answer == QMessageBox.Yes:
                self._on_reload()
                # Reapply only the edited fields on top of the reloaded record.
                fresh = self._snapshot.metadata.get(document_id)
                if fresh is None:
                    fresh = DocumentMetadata.empty(document_id)
                metadata = replace(
                    fresh,
                    synopsis=metadata.synopsis,
                    modified_at=metadata.modified_at,
                )

        try:
            updated = update_metadata(document_id, metadata, self._project_dir)
        except OSError as exc:
            logging.error("Could not save metadata for %r: %s", document_id, exc)
            QMessageBox.warning(self, "Save failed", f"Could not save metadata:\n{exc}")
            return

        self._snapshot.metadata = updated
        self._metadata_mtime = metadata_file_info(self._project_dir).mtime
        if self._current_folder is not None:
            self._outliner.set_snapshot(self._current_folder, metadata=updated)
        self._outliner.select_item(document_id)

    def _on_view_state_changed(self) -> None:
        save_view_state(self._settings, self._outliner.model.state)


# ----------------------------------------------------------------------
# Application entry points
# ----------------------------------------------------------------------


def run(argv: Optional[List[str]] = None) -> None:
    """
    Start the Qt application and show the main window.

    The first positional argument, if given, is a project directory to
    open; otherwise the last opened project is restored.
    """
    argv = list(sys.argv if argv is None else argv)
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = QApplication.instance()
    if app is None:
        app = QApplication(argv)

    window = MainWindow()
    window.show()

    if len(argv) > 1:
        window.open_project(Path(argv[1]))
    else:
        window.initialize_data()

    app.exec()


def main() -> None:
    """
    Console-script entry point.

    This is what ``binder-outliner`` calls after installation.
    """
    run()
