"""
In-Memory Host

A small, self-contained host implementing every collaborator contract the
propagation core consumes: content store, soft link repository, content
type repository and event bus.

It is used by the test suite and by hosts that want to exercise the
propagation flow without a real content repository.

Save Semantics
--------------
- A publishing save of a document raises `document_publishing` before the
  revision is stored; the stored revision is whatever the handlers left in
  the event.
- A publishing save of a component raises `component_published` after the
  revision is stored. Handler failures for that event are logged, never
  raised back to the publisher.
- Soft links owned by an item are rebuilt on every save.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Set

from ..core.errors import AccessDeniedError
from ..propagation.cycle import PropagationCycle, propagation_cycle
from ..propagation.events import (
    COMPONENT_PUBLISHED,
    DOCUMENT_PUBLISHING,
    ComponentPublishedEvent,
    DocumentPublishingEvent,
)
from .protocols import EventHandler
from .models import (
    AccessLevel,
    Component,
    CompositionArea,
    ContentId,
    ContentType,
    Document,
    EmbeddedComponent,
    LinkKind,
    LoadResult,
    PublishStatus,
    SaveIntent,
    SoftLink,
    Unresolved,
)

logger = logging.getLogger("blocksearch.host")


# ---------------------------------------------------------------------
# Event Bus
# ---------------------------------------------------------------------

class InMemoryEventBus:
    """Synchronous event bus; handlers run in subscription order."""

    def __init__(self) -> None:
        self._handlers: Dict[str, List[EventHandler]] = defaultdict(list)

    def subscribe(self, event_name: str, handler: EventHandler) -> None:
        self._handlers[event_name].append(handler)

    def unsubscribe(self, event_name: str, handler: EventHandler) -> None:
        handlers = self._handlers.get(event_name, [])
        if handler in handlers:
            handlers.remove(handler)

    def handler_count(self, event_name: str) -> int:
        return len(self._handlers.get(event_name, []))

    def emit(self, event_name: str, event: Any, isolate_errors: bool = False) -> None:
        """
        Deliver `event` to every handler of `event_name`.

        With `isolate_errors`, a failing handler is logged and the remaining
        handlers still run.
        """
        for handler in list(self._handlers.get(event_name, [])):
            if not isolate_errors:
                handler(event)
                continue
            try:
                handler(event)
            except Exception:
                logger.exception("Handler for '%s' failed.", event_name)


# ---------------------------------------------------------------------
# Soft Links
# ---------------------------------------------------------------------

class InMemorySoftLinkRepository:
    def __init__(self) -> None:
        self._links: List[SoftLink] = []

    def add(self, link: SoftLink) -> None:
        self._links.append(link)

    def replace_owned(self, owner: ContentId, links: List[SoftLink]) -> None:
        key = owner.to_unversioned()
        self._links = [
            link for link in self._links
            if link.owner is None or link.owner.to_unversioned() != key
        ]
        self._links.extend(links)

    def load(self, content_link: ContentId, reversed: bool = False) -> List[SoftLink]:
        key = content_link.to_unversioned()
        if reversed:
            return [link for link in self._links if link.target.to_unversioned() == key]
        return [
            link for link in self._links
            if link.owner is not None and link.owner.to_unversioned() == key
        ]


def _owned_links(owner: ContentId, fields: Dict[str, Any]) -> Iterator[SoftLink]:
    for value in fields.values():
        if isinstance(value, CompositionArea):
            for item in value.items:
                yield SoftLink(
                    owner=owner,
                    target=item.content_link,
                    kind=LinkKind.DOCUMENT_EMBEDS_CONTENT,
                )
        elif isinstance(value, EmbeddedComponent):
            yield from _owned_links(owner, value.fields)
        elif isinstance(value, ContentId):
            yield SoftLink(owner=owner, target=value, kind=LinkKind.NAVIGATION)


# ---------------------------------------------------------------------
# Content Types
# ---------------------------------------------------------------------

class InMemoryContentTypeRepository:
    def __init__(self, *content_types: ContentType) -> None:
        self._types: Dict[str, ContentType] = {t.type_id: t for t in content_types}

    def register(self, content_type: ContentType) -> None:
        self._types[content_type.type_id] = content_type

    def load(self, type_id: str) -> Optional[ContentType]:
        return self._types.get(type_id)


# ---------------------------------------------------------------------
# Content Store
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class SaveRecord:
    content_link: ContentId
    intent: SaveIntent
    access: AccessLevel
    cycle_id: str


class InMemoryContentStore:
    """
    Current-revision content store.

    Items listed through `deny()` carry a content-level restriction: every
    save of them raises `AccessDeniedError`, whatever access level is
    requested.
    """

    def __init__(
        self,
        events: Optional[InMemoryEventBus] = None,
        soft_links: Optional[InMemorySoftLinkRepository] = None,
    ) -> None:
        self.events = events or InMemoryEventBus()
        self.soft_links = soft_links or InMemorySoftLinkRepository()
        self.saves: List[SaveRecord] = []
        self._items: Dict[ContentId, Document | Component] = {}
        self._denied: Set[ContentId] = set()

    # ------------------------------------------------------------------
    # Seeding
    # ------------------------------------------------------------------

    def add(self, *items: Document | Component) -> None:
        """Store items as-is, without raising any event."""
        for item in items:
            self._store(item)

    def deny(self, content_link: ContentId) -> None:
        self._denied.add(content_link.to_unversioned())

    # ------------------------------------------------------------------
    # ContentStore
    # ------------------------------------------------------------------

    def try_load(self, content_link: ContentId) -> LoadResult:
        item = self._items.get(content_link.to_unversioned())
        if item is None:
            return Unresolved(content_link=content_link)
        return item

    def save(
        self,
        item: Document | Component,
        intent: SaveIntent,
        access: AccessLevel = AccessLevel.EDIT,
        cycle: Optional[PropagationCycle] = None,
    ) -> ContentId:
        key = item.content_link.to_unversioned()
        if key in self._denied:
            raise AccessDeniedError(f"Access denied to content {key}.")

        publishing = SaveIntent.PUBLISH in intent

        with propagation_cycle(cycle) as active:
            self.saves.append(
                SaveRecord(
                    content_link=item.content_link,
                    intent=intent,
                    access=access,
                    cycle_id=active.cycle_id,
                )
            )

            if publishing and isinstance(item, Document):
                event = DocumentPublishingEvent(
                    document=item.model_copy(update={"status": PublishStatus.PUBLISHED}),
                    cycle=active,
                )
                self.events.emit(DOCUMENT_PUBLISHING, event)
                item = event.document

            self._store(item)

        if publishing and isinstance(item, Component):
            self.events.emit(
                COMPONENT_PUBLISHED,
                ComponentPublishedEvent(content_link=item.content_link),
                isolate_errors=True,
            )

        return item.content_link

    # ------------------------------------------------------------------
    # Internal Helpers
    # ------------------------------------------------------------------

    def _store(self, item: Document | Component) -> None:
        owner = item.content_link.to_unversioned()
        self._items[owner] = item
        self.soft_links.replace_owned(owner, list(_owned_links(owner, item.fields)))
