from binder_outliner.core.config import (
    get_last_project_dir,
    get_recent_projects,
    set_last_project_dir,
)
from binder_outliner.core.outline import (
    OutlineTableModel,
    OutlineViewState,
    OutlinerColumn,
    word_count,
)
