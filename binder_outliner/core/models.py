from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional


class BinderItemType(Enum):
    """Kind of node in the binder tree."""

    FOLDER = "folder"
    TEXT = "text"
    IMAGE = "image"
    PDF = "pdf"
    WEB_ARCHIVE = "web_archive"


@dataclass
class BinderItem:
    """
    A node in the binder (document tree).

    Only folders carry children. The outliner treats items as read-only
    for the duration of a render pass; structural edits happen elsewhere
    and are picked up on the next reload.
    """

    #: Stable identifier, also used as key into the content and
    #: metadata mappings.
    id: str

    #: Title as shown in the binder and in the outliner's Title column.
    title: str

    type: BinderItemType = BinderItemType.TEXT

    #: Ordered children. Empty for anything that is not a folder.
    children: List["BinderItem"] = field(default_factory=list)

    @property
    def is_folder(self) -> bool:
        return self.type is BinderItemType.FOLDER

    @property
    def is_document(self) -> bool:
        return self.type is BinderItemType.TEXT

    @property
    def is_research_item(self) -> bool:
        return self.type in (
            BinderItemType.IMAGE,
            BinderItemType.PDF,
            BinderItemType.WEB_ARCHIVE,
        )


class DocumentStatus(Enum):
    """
    Writing status of a document.

    Declaration order is meaningful: the outliner sorts the Status
    column by position in this enumeration, with ``NO_STATUS`` lowest.
    """

    NO_STATUS = "No Status"
    TO_DO = "To Do"
    IN_PROGRESS = "In Progress"
    FIRST_DRAFT = "First Draft"
    REVISED_DRAFT = "Revised Draft"
    FINAL_DRAFT = "Final Draft"
    DONE = "Done"

    @property
    def display_name(self) -> str:
        return self.value

    @property
    def ordinal(self) -> int:
        return _STATUS_ORDER.index(self)


_STATUS_ORDER = list(DocumentStatus)


@dataclass(frozen=True)
class DocumentLabel:
    """User-defined label with an ARGB colour (e.g. ``0xFFE53935``)."""

    name: str
    color_value: int


RED = DocumentLabel("Red", 0xFFE53935)
ORANGE = DocumentLabel("Orange", 0xFFFF9800)
YELLOW = DocumentLabel("Yellow", 0xFFFFEB3B)
GREEN = DocumentLabel("Green", 0xFF4CAF50)
BLUE = DocumentLabel("Blue", 0xFF2196F3)
PURPLE = DocumentLabel("Purple", 0xFF9C27B0)


def predefined_labels() -> List[DocumentLabel]:
    """Return the built-in label palette in menu order."""
    return [RED, ORANGE, YELLOW, GREEN, BLUE, PURPLE]


@dataclass
class DocumentMetadata:
    """
    Per-document metadata shown in the outliner and inspector.

    Records are keyed by ``document_id`` in a ``MetadataMap``. A document
    without an entry simply has no metadata; consumers fall back to the
    defaults below rather than creating a record.
    """

    document_id: str
    label: Optional[DocumentLabel] = None
    status: DocumentStatus = DocumentStatus.NO_STATUS
    synopsis: str = ""

    #: Free-form notes kept separately from the main text.
    notes: str = ""

    word_count_target: Optional[int] = None
    include_in_compile: bool = True
    custom_icon: Optional[str] = None
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None

    @classmethod
    def empty(cls, document_id: str) -> "DocumentMetadata":
        """Default metadata for a freshly created document."""
        now = datetime.now(timezone.utc)
        return cls(document_id=document_id, created_at=now, modified_at=now)


# Document id -> raw text. A missing id means empty text.
ContentMap = Dict[str, str]

# Document id -> metadata. A missing id means "no metadata".
MetadataMap = Dict[str, DocumentMetadata]
