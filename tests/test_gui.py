# tests/test_gui.py
import json
import os

import pytest
from PySide6.QtCore import QSettings, Qt
from PySide6.QtWidgets import QMessageBox

from binder_outliner.core.metadata_store import load_metadata
from binder_outliner.core.models import (
    RED,
    BinderItem,
    BinderItemType,
    DocumentMetadata,
    DocumentStatus,
)
from binder_outliner.core.outline import (
    OutlineTableModel,
    OutlineViewState,
    OutlinerColumn,
)
from binder_outliner.gui.main_window import MainWindow, load_view_state, save_view_state
from binder_outliner.gui.outliner_table_model import OutlinerTableModel, SortKeyRole
from binder_outliner.gui.outliner_view import EMPTY_FOLDER_TEXT, OutlinerView


def _folder(*titles):
    children = [
        BinderItem(id=t.lower(), title=t, type=BinderItemType.TEXT) for t in titles
    ]
    return BinderItem(id="f", title="Chapters", type=BinderItemType.FOLDER, children=children)


@pytest.fixture
def settings(tmp_path):
    return QSettings(str(tmp_path / "settings.ini"), QSettings.IniFormat)


# --- OutlinerTableModel ---

def test_table_model_shape_and_headers(qapp):
    model = OutlinerTableModel(OutlineTableModel(_folder("Charlie", "Alpha", "Bravo")))
    assert model.rowCount() == 3
    assert model.columnCount() == 5
    headers = [model.headerData(i, Qt.Horizontal) for i in range(model.columnCount())]
    assert headers == ["Title", "Synopsis", "Status", "Label", "Words"]
    assert model.data(model.index(0, 0)) == "Alpha"
    assert model.item_at(2).title == "Charlie"
    assert model.item_at(3) is None


def test_table_model_sort_descending(qapp):
    model = OutlinerTableModel(OutlineTableModel(_folder("Charlie", "Alpha", "Bravo")))
    model.sort(0, Qt.DescendingOrder)
    titles = [model.data(model.index(r, 0)) for r in range(model.rowCount())]
    assert titles == ["Charlie", "Bravo", "Alpha"]
    assert model.state.sort_ascending is False


def test_table_model_label_colours_and_sort_key(qapp):
    folder = _folder("Alpha")
    metadata = {"alpha": DocumentMetadata("alpha", label=RED)}
    model = OutlinerTableModel(OutlineTableModel(folder, {"alpha": "a b c"}, metadata))

    label_section = model.section_of(OutlinerColumn.LABEL)
    index = model.index(0, label_section)
    assert model.data(index) == "Red"
    assert model.data(index, Qt.BackgroundRole).rgba() == RED.color_value
    assert model.data(index, Qt.ForegroundRole).rgba() == 0xFFFFFFFF

    words = model.index(0, model.section_of(OutlinerColumn.WORD_COUNT))
    assert model.data(words, SortKeyRole) == 3


def test_table_model_toggle_column_changes_column_count(qapp):
    model = OutlinerTableModel(OutlineTableModel(_folder("Alpha")))
    changes = []
    model.layoutStateChanged.connect(lambda: changes.append(True))

    model.toggle_column(OutlinerColumn.MODIFIED)
    assert model.columnCount() == 6
    model.toggle_column(OutlinerColumn.TITLE)
    assert model.columnCount() == 6
    assert len(changes) == 2


def test_synopsis_edit_emits_metadata_changed(qapp):
    model = OutlinerTableModel(OutlineTableModel(_folder("Alpha")))
    received = []
    model.metadataChanged.connect(lambda doc_id, meta: received.append((doc_id, meta)))

    synopsis = model.index(0, model.section_of(OutlinerColumn.SYNOPSIS))
    assert model.flags(synopsis) & Qt.ItemIsEditable
    assert not model.flags(model.index(0, 0)) & Qt.ItemIsEditable

    assert model.setData(synopsis, "A quiet start")
    doc_id, meta = received[0]
    assert doc_id == "alpha"
    assert meta.synopsis == "A quiet start"
    assert meta.modified_at is not None
    assert meta.modified_at.tzinfo is not None
    # The snapshot itself is untouched until the owner hands back new metadata.
    assert model.data(synopsis) == ""


# --- OutlinerView ---

def test_view_shows_empty_state_for_empty_folder(qapp):
    view = OutlinerView(OutlineTableModel(_folder()))
    assert view.is_showing_empty_state()
    assert EMPTY_FOLDER_TEXT == "No documents in this folder"

    view.set_snapshot(_folder("Alpha"))
    assert not view.is_showing_empty_state()


def test_view_header_click_toggles_direction(qapp):
    view = OutlinerView(OutlineTableModel(_folder("Charlie", "Alpha", "Bravo")))
    header = view.table.horizontalHeader()
    model = view.model

    header.sectionClicked.emit(0)
    assert model.state.sort_ascending is False
    assert model.data(model.index(0, 0)) == "Charlie"

    header.sectionClicked.emit(0)
    assert model.state.sort_ascending is True
    assert model.data(model.index(0, 0)) == "Alpha"


def test_view_column_menu_title_disabled(qapp):
    view = OutlinerView(OutlineTableModel(_folder("Alpha")))
    actions = view.column_actions
    assert not actions[OutlinerColumn.TITLE].isEnabled()
    assert actions[OutlinerColumn.TITLE].isChecked()
    assert not actions[OutlinerColumn.MODIFIED].isChecked()

    actions[OutlinerColumn.MODIFIED].trigger()
    assert OutlinerColumn.MODIFIED in view.model.outline.visible_columns
    assert view.column_actions[OutlinerColumn.MODIFIED].isChecked()


def test_view_emits_selection_and_activation(qapp):
    view = OutlinerView(OutlineTableModel(_folder("Bravo", "Alpha")))
    selected, activated = [], []
    view.itemSelected.connect(selected.append)
    view.itemActivated.connect(activated.append)

    view.select_item("bravo")
    assert selected[-1].title == "Bravo"
    assert view.selected_item().title == "Bravo"

    view.table.doubleClicked.emit(view.model.index(0, 0))
    assert activated[-1].title == "Alpha"


# --- view state persistence ---

def test_view_state_round_trip_through_qsettings(settings):
    state = OutlineViewState(
        visible_columns={OutlinerColumn.TITLE, OutlinerColumn.MODIFIED},
        sort_column=OutlinerColumn.MODIFIED,
        sort_ascending=False,
    )
    save_view_state(settings, state)
    settings.sync()

    restored = load_view_state(settings)
    assert restored.ordered_columns() == [OutlinerColumn.TITLE, OutlinerColumn.MODIFIED]
    assert restored.sort_column is OutlinerColumn.MODIFIED
    assert restored.sort_ascending is False


def test_view_state_defaults_when_settings_empty(settings):
    state = load_view_state(settings)
    assert state == OutlineViewState()


# --- MainWindow ---

def test_main_window_opens_project_and_navigates(qapp, fake_home, project_dir, settings):
    window = MainWindow(settings=settings)
    assert window.open_project(project_dir)

    model = window.outliner.model
    titles = [model.data(model.index(r, 0)) for r in range(model.rowCount())]
    assert titles == ["Alpha", "Bravo", "Charlie", "Part One"]

    part = model.item_at(3)
    window.outliner.itemActivated.emit(part)
    assert window.current_folder.id == "part-1"
    assert model.rowCount() == 1

    window._on_up()
    assert window.current_folder.id == "root"

    saved = json.loads((fake_home / ".binder_outliner" / "config.json").read_text())
    assert saved["last_project_dir"] == str(project_dir)


def test_main_window_persists_synopsis_edit(qapp, fake_home, project_dir, settings):
    window = MainWindow(settings=settings)
    window.open_project(project_dir)
    model = window.outliner.model

    row = model.row_of("ch-a")
    index = model.index(row, model.section_of(OutlinerColumn.SYNOPSIS))
    assert model.setData(index, "Everything begins")

    assert load_metadata(project_dir)["ch-a"].synopsis == "Everything begins"
    row = model.row_of("ch-a")
    assert model.data(model.index(row, model.section_of(OutlinerColumn.SYNOPSIS))) == "Everything begins"


def test_main_window_saves_view_state_on_sort(qapp, fake_home, project_dir, settings):
    window = MainWindow(settings=settings)
    window.open_project(project_dir)
    window.outliner.model.sort(
        window.outliner.model.section_of(OutlinerColumn.WORD_COUNT), Qt.DescendingOrder
    )
    restored = load_view_state(settings)
    assert restored.sort_column is OutlinerColumn.WORD_COUNT
    assert restored.sort_ascending is False


def test_title_cells_show_folder_and_document_icons(qapp):
    folder = _folder("Alpha")
    folder.children.append(
        BinderItem(id="sub", title="Zeta", type=BinderItemType.FOLDER, children=[])
    )
    model = OutlinerTableModel(OutlineTableModel(folder))

    doc_icon = model.data(model.index(model.row_of("alpha"), 0), Qt.DecorationRole)
    folder_icon = model.data(model.index(model.row_of("sub"), 0), Qt.DecorationRole)
    assert doc_icon is not None and not doc_icon.isNull()
    assert folder_icon is not None and not folder_icon.isNull()

    synopsis = model.index(0, model.section_of(OutlinerColumn.SYNOPSIS))
    assert model.data(synopsis, Qt.DecorationRole) is None


def test_view_keeps_user_column_widths_across_refresh(qapp):
    view = OutlinerView(OutlineTableModel(_folder("Charlie", "Alpha", "Bravo")))
    header = view.table.horizontalHeader()
    synopsis = view.model.section_of(OutlinerColumn.SYNOPSIS)
    status = view.model.section_of(OutlinerColumn.STATUS)
    assert header.sectionSize(synopsis) == OutlinerColumn.SYNOPSIS.default_width

    header.resizeSection(synopsis, 412)
    view.model.sort(0, Qt.DescendingOrder)
    assert header.sectionSize(synopsis) == 412

    view.model.toggle_column(OutlinerColumn.MODIFIED)
    assert header.sectionSize(view.model.section_of(OutlinerColumn.SYNOPSIS)) == 412
    assert header.sectionSize(status) == OutlinerColumn.STATUS.default_width


def _change_metadata_on_disk(project_dir, document_id, **fields):
    path = project_dir / "metadata.json"
    raw = json.loads(path.read_text(encoding="utf-8"))
    raw["documents"][document_id].update(fields)
    path.write_text(json.dumps(raw), encoding="utf-8")
    stat = path.stat()
    os.utime(path, (stat.st_atime, stat.st_mtime + 10))


def test_edit_after_external_change_reloads_and_keeps_disk_fields(
    qapp, fake_home, project_dir, settings, monkeypatch
):
    window = MainWindow(settings=settings)
    window.open_project(project_dir)
    model = window.outliner.model

    _change_metadata_on_disk(project_dir, "ch-c", status="done", notes="Check dates")
    asked = []

    def answer_yes(*args, **kwargs):
        asked.append(args)
        return QMessageBox.Yes

    monkeypatch.setattr(QMessageBox, "question", answer_yes)

    index = model.index(model.row_of("ch-c"), model.section_of(OutlinerColumn.SYNOPSIS))
    assert model.setData(index, "The storm breaks.")

    assert len(asked) == 1
    stored = load_metadata(project_dir)["ch-c"]
    assert stored.synopsis == "The storm breaks."
    assert stored.status is DocumentStatus.DONE
    assert stored.notes == "Check dates"
    assert stored.label.name == "Red"

    status = model.index(model.row_of("ch-c"), model.section_of(OutlinerColumn.STATUS))
    assert model.data(status) == "Done"


def test_edit_without_external_change_does_not_prompt(
    qapp, fake_home, project_dir, settings, monkeypatch
):
    window = MainWindow(settings=settings)
    window.open_project(project_dir)
    model = window.outliner.model

    def fail(*args, **kwargs):
        raise AssertionError("unexpected prompt")

    monkeypatch.setattr(QMessageBox, "question", fail)

    index = model.index(model.row_of("ch-c"), model.section_of(OutlinerColumn.SYNOPSIS))
    assert model.setData(index, "Calm before it.")
    assert load_metadata(project_dir)["ch-c"].status is DocumentStatus.FIRST_DRAFT
