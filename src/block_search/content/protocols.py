"""
Host Collaborator Contracts

The propagation core never owns storage, link tracking, type metadata or
event delivery. It talks to the host through the narrow protocols below.
"""

from __future__ import annotations

from typing import Any, Callable, List, Optional, Protocol, TYPE_CHECKING

from .models import (
    AccessLevel,
    ContentId,
    ContentType,
    Document,
    Component,
    LinkKind,
    LoadResult,
    SaveIntent,
    SoftLink,
)

if TYPE_CHECKING:
    from ..propagation.cycle import PropagationCycle


EventHandler = Callable[[Any], Any]


class ContentStore(Protocol):
    def try_load(self, content_link: ContentId) -> LoadResult:
        """Return the current revision, or `Unresolved`. Never raises for not-found."""

    def save(
        self,
        item: Document | Component,
        intent: SaveIntent,
        access: AccessLevel,
        cycle: Optional["PropagationCycle"] = None,
    ) -> ContentId:
        """
        Persist a new revision.

        Raises `AccessDeniedError` when the permission layer rejects the
        save and `PersistenceError` for any other failure. A publishing save
        raises the document-publishing event carrying `cycle`.
        """


class SoftLinkRepository(Protocol):
    def load(self, content_link: ContentId, reversed: bool = False) -> List[SoftLink]:
        """Links owned by `content_link`, or pointing at it when `reversed`."""


class ReferenceIndex(Protocol):
    def inverse_references(self, target: ContentId, kind: LinkKind) -> List[ContentId]:
        """Owners referencing `target` through links of `kind`."""


class ContentTypeRepository(Protocol):
    def load(self, type_id: str) -> Optional[ContentType]:
        """Return the type, None when unknown, or raise `SchemaResolutionError`."""


class ContentEvents(Protocol):
    def subscribe(self, event_name: str, handler: EventHandler) -> None: ...

    def unsubscribe(self, event_name: str, handler: EventHandler) -> None: ...
