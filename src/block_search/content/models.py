"""
Content Data Models

This module defines the canonical data model shared by the aggregation and
propagation layers:

- Content identity (`ContentId`) and soft links between content items
- Content type schemas (`ContentType`, `FieldDef`) with explicit field roles
- The closed load variant returned by a content store:
  `Document | Component | Unresolved`
- Field values that embed other content (`CompositionArea`,
  `EmbeddedComponent`)
- Scoped, mutable drafts of otherwise immutable documents

Documents and components are frozen snapshots. The only way to change a
field is to open a `DocumentDraft` and commit it into a new snapshot.
"""

from __future__ import annotations

import copy
from enum import Enum, Flag, auto
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator


# ---------------------------------------------------------------------
# Identity & Links
# ---------------------------------------------------------------------

class ContentId(BaseModel):
    """
    Stable reference to a content item, optionally pinned to a version.

    Two references are equal when they point at the same item and version,
    regardless of the content behind them.
    """

    id: int = Field(..., ge=0, description="Content item identifier. 0 is the empty reference.")
    work_id: int = Field(default=0, ge=0, description="Version identifier. 0 means the current version.")

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def is_empty(self) -> bool:
        return self.id == 0

    def to_unversioned(self) -> "ContentId":
        if self.work_id == 0:
            return self
        return ContentId(id=self.id)

    def __str__(self) -> str:
        if self.work_id:
            return f"{self.id}_{self.work_id}"
        return str(self.id)


class LinkKind(str, Enum):
    """Kind tag carried by a soft link."""

    DOCUMENT_EMBEDS_CONTENT = "document_embeds_content"
    NAVIGATION = "navigation"
    EXTERNAL = "external"
    IMAGE = "image"


class SoftLink(BaseModel):
    """Directed edge recording that `owner` references `target`."""

    owner: Optional[ContentId] = None
    target: ContentId
    kind: LinkKind = LinkKind.DOCUMENT_EMBEDS_CONTENT

    model_config = ConfigDict(frozen=True, extra="forbid")


# ---------------------------------------------------------------------
# Content Type Schema
# ---------------------------------------------------------------------

class FieldType(str, Enum):
    STRING = "string"
    LONG_STRING = "long_string"
    XHTML = "xhtml"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    LINK = "link"
    COMPOSITION = "composition"
    BLOCK = "block"


TEXT_FIELD_TYPES = frozenset({FieldType.STRING, FieldType.LONG_STRING})


class FieldRole(str, Enum):
    """Schema-declared role of a field, resolved once when the type loads."""

    AGGREGATED_SEARCH_TARGET = "aggregated_search_target"


class FieldDef(BaseModel):
    """
    A single field definition of a content type.
    """

    name: str = Field(..., min_length=1)
    declared_type: FieldType = FieldType.STRING
    searchable: bool = False
    role: Optional[FieldRole] = None

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def is_composition(self) -> bool:
        return self.declared_type is FieldType.COMPOSITION

    @property
    def is_text(self) -> bool:
        return self.declared_type in TEXT_FIELD_TYPES


class ContentType(BaseModel):
    """
    Ordered field definitions of a document or component type.

    The aggregated search target is resolved once at construction: the
    first field, in declaration order, carrying the
    `AGGREGATED_SEARCH_TARGET` role.
    """

    type_id: str = Field(..., min_length=1)
    fields: List[FieldDef] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, extra="forbid")

    _aggregated_search_field: Optional[FieldDef] = PrivateAttr(default=None)

    @field_validator("fields")
    @classmethod
    def validate_unique_names(cls, v: List[FieldDef]) -> List[FieldDef]:
        seen = set()
        for field_def in v:
            if field_def.name in seen:
                raise ValueError(f"Duplicate field name '{field_def.name}'")
            seen.add(field_def.name)
        return v

    def model_post_init(self, __context: Any) -> None:
        self._aggregated_search_field = next(
            (f for f in self.fields if f.role is FieldRole.AGGREGATED_SEARCH_TARGET),
            None,
        )

    @property
    def aggregated_search_field(self) -> Optional[FieldDef]:
        return self._aggregated_search_field

    @property
    def composition_fields(self) -> List[FieldDef]:
        return [f for f in self.fields if f.is_composition]


# ---------------------------------------------------------------------
# Embedding Field Values
# ---------------------------------------------------------------------

class CompositionItem(BaseModel):
    """One slot of a composition area."""

    content_link: ContentId
    display_option: Optional[str] = None

    model_config = ConfigDict(frozen=True, extra="forbid")


class CompositionArea(BaseModel):
    """Ordered sequence of embedding slots held by a composition field."""

    items: List[CompositionItem] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @classmethod
    def of(cls, *links: ContentId) -> "CompositionArea":
        return cls(items=[CompositionItem(content_link=link) for link in links])


class EmbeddedComponent(BaseModel):
    """
    Component stored inline as a field value (a "property block").

    It has no content link of its own; its text is reached only through the
    field that holds it.
    """

    type_id: str = Field(..., min_length=1)
    fields: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True, extra="forbid")


# ---------------------------------------------------------------------
# Load Variant
# ---------------------------------------------------------------------

class PublishStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class _ContentItem(BaseModel):
    content_link: ContentId
    name: str = ""
    type_id: str = Field(..., min_length=1)
    fields: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True, extra="forbid")


class Document(_ContentItem):
    """Independently indexable content item."""

    kind: Literal["document"] = "document"
    status: PublishStatus = PublishStatus.DRAFT

    @property
    def is_published(self) -> bool:
        return self.status is PublishStatus.PUBLISHED

    def open_draft(self) -> "DocumentDraft":
        return DocumentDraft(self)


class Component(_ContentItem):
    """Embeddable content item with no search-index identity of its own."""

    kind: Literal["component"] = "component"


class Unresolved(BaseModel):
    """A content link that no longer resolves to content."""

    kind: Literal["unresolved"] = "unresolved"
    content_link: ContentId

    model_config = ConfigDict(frozen=True, extra="forbid")


LoadResult = Union[Document, Component, Unresolved]


# ---------------------------------------------------------------------
# Drafts
# ---------------------------------------------------------------------

class DocumentDraft:
    """
    Mutable working copy of a frozen `Document`.

    Field values are deep-copied on open so mutating a draft never leaks
    into the snapshot it came from.
    """

    def __init__(self, source: Document) -> None:
        self._source = source
        self._fields: Dict[str, Any] = copy.deepcopy(dict(source.fields))

    @property
    def source(self) -> Document:
        return self._source

    def get_field(self, name: str) -> Any:
        return self._fields.get(name)

    def set_field(self, name: str, value: Any) -> None:
        self._fields[name] = value

    def commit(self) -> Document:
        return self._source.model_copy(update={"fields": dict(self._fields)})


# ---------------------------------------------------------------------
# Save Semantics
# ---------------------------------------------------------------------

class SaveIntent(Flag):
    PUBLISH = auto()
    FORCE_CURRENT_VERSION = auto()
    CHECK_OUT = auto()


REPUBLISH_INTENT = SaveIntent.PUBLISH | SaveIntent.FORCE_CURRENT_VERSION


class AccessLevel(str, Enum):
    """
    Access level requested for a save.

    `NO_ACCESS` asks the store to skip the acting user's permission check
    while still honoring content-level restrictions on the target.
    """

    NO_ACCESS = "no_access"
    READ = "read"
    EDIT = "edit"
    PUBLISH = "publish"
