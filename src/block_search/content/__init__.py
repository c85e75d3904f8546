"""
Content Package

Data model and host collaborator contracts shared by the aggregation and
propagation layers.
"""

from .models import (
    AccessLevel,
    Component,
    CompositionArea,
    CompositionItem,
    ContentId,
    ContentType,
    Document,
    DocumentDraft,
    EmbeddedComponent,
    FieldDef,
    FieldRole,
    FieldType,
    LinkKind,
    LoadResult,
    PublishStatus,
    REPUBLISH_INTENT,
    SaveIntent,
    SoftLink,
    Unresolved,
)
from .protocols import (
    ContentEvents,
    ContentStore,
    ContentTypeRepository,
    ReferenceIndex,
    SoftLinkRepository,
)

__all__ = [
    "AccessLevel",
    "Component",
    "CompositionArea",
    "CompositionItem",
    "ContentId",
    "ContentType",
    "Document",
    "DocumentDraft",
    "EmbeddedComponent",
    "FieldDef",
    "FieldRole",
    "FieldType",
    "LinkKind",
    "LoadResult",
    "PublishStatus",
    "REPUBLISH_INTENT",
    "SaveIntent",
    "SoftLink",
    "Unresolved",
    "ContentEvents",
    "ContentStore",
    "ContentTypeRepository",
    "ReferenceIndex",
    "SoftLinkRepository",
]
