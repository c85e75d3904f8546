"""
Search Text Aggregator

This module flattens the searchable text of a content item, including the
text of every component it embeds, into a single plain-text blob.

Traversal Order
---------------
Depth-first. Schema field declaration order is the outer loop, composition
slot order the inner loop. The output for an unchanged content graph is
byte-identical between runs.

Failure Policy
--------------
Nothing here raises for bad data. An unresolvable slot, a value that does
not match its declared field type, an unknown content type, or a component
that (through stale data) embeds one of its own ancestors is logged and
skipped, and the walk carries on with the next field or slot.

Boundaries
----------
The walk descends into components only. A document placed in a composition
area (a teaser) is an index root of its own and contributes nothing.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, FrozenSet, Iterator, List, Optional, Union

from pydantic import BaseModel

from ..content.models import (
    Component,
    CompositionArea,
    ContentId,
    Document,
    EmbeddedComponent,
    FieldDef,
    FieldRole,
    FieldType,
    Unresolved,
)
from ..content.protocols import ContentStore
from ..core.errors import SkipReason
from .markup import strip_markup
from .schema import ContentTypeSchema

logger = logging.getLogger("blocksearch.aggregator")

FRAGMENT_SEPARATOR = " "

Aggregatable = Union[Document, Component, EmbeddedComponent]


# ---------------------------------------------------------------------
# Value Rendering
# ---------------------------------------------------------------------

def render_field_value(value: Any) -> Optional[str]:
    """
    Render a plain field value as text.

    Returns None for values with no text representation (nested models such
    as links).
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        parts = [render_field_value(v) for v in value]
        return FRAGMENT_SEPARATOR.join(p for p in parts if p)
    if isinstance(value, BaseModel):
        return None
    return str(value)


def _skip(reason: SkipReason, message: str, *args: Any) -> None:
    logger.info("[Blocksearch] " + message + " (%s)", *args, reason.value)


# ---------------------------------------------------------------------
# Aggregator
# ---------------------------------------------------------------------

class Aggregator:
    """
    Build aggregated search text for documents and components.

    The aggregator holds no state between calls; every call reads the
    current revisions from the content store.
    """

    def __init__(
        self,
        content_store: ContentStore,
        schema: ContentTypeSchema,
        max_length: int = 0,
    ) -> None:
        """
        Parameters
        ----------
        content_store : ContentStore
            Resolves composition slots to their current revision.

        schema : ContentTypeSchema
            Field definitions per content type.

        max_length : int
            Truncation length of the final text. 0 disables truncation.
        """
        self._content_store = content_store
        self._schema = schema
        self._max_length = max_length

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def aggregate(self, item: Aggregatable, type_id: str) -> str:
        """
        Aggregate every searchable value reachable from `item`.

        Flat searchable fields, embedded components and components placed
        in composition areas all contribute.
        """
        fragments = list(self._walk(item, type_id, self._root_ancestors(item)))
        return self._finish(fragments)

    def aggregate_compositions(self, document: Document) -> str:
        """
        Aggregate only what the document's composition fields embed.

        The document's own flat fields are left out: the search engine
        already indexes them.
        """
        fragments = list(
            self._walk(
                document,
                document.type_id,
                self._root_ancestors(document),
                compositions_only=True,
            )
        )
        return self._finish(fragments)

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def _walk(
        self,
        item: Aggregatable,
        type_id: str,
        ancestors: FrozenSet[ContentId],
        compositions_only: bool = False,
    ) -> Iterator[str]:
        for field_def in self._schema.fields_of(type_id):
            if compositions_only and not field_def.is_composition:
                continue
            # Never feed a previous aggregate back into itself
            if field_def.role is FieldRole.AGGREGATED_SEARCH_TARGET:
                continue

            value = item.fields.get(field_def.name)
            if value is None:
                continue

            yield from self._walk_field(field_def, value, ancestors)

    def _walk_field(
        self,
        field_def: FieldDef,
        value: Any,
        ancestors: FrozenSet[ContentId],
    ) -> Iterator[str]:
        match value:
            case EmbeddedComponent():
                yield from self._walk(value, value.type_id, ancestors)

            case CompositionArea() if field_def.is_composition:
                yield from self._walk_area(value, ancestors)

            case _ if field_def.declared_type in (FieldType.COMPOSITION, FieldType.BLOCK):
                _skip(
                    SkipReason.TYPE_MISMATCH,
                    "Field '%s' declared as %s holds %s. Skipping.",
                    field_def.name,
                    field_def.declared_type.value,
                    type(value).__name__,
                )

            case CompositionArea():
                _skip(
                    SkipReason.TYPE_MISMATCH,
                    "Field '%s' holds a composition area but is not a composition field. Skipping.",
                    field_def.name,
                )

            case _ if field_def.searchable:
                text = render_field_value(value)
                if text is None:
                    _skip(
                        SkipReason.TYPE_MISMATCH,
                        "Searchable field '%s' has no text representation. Skipping.",
                        field_def.name,
                    )
                elif text:
                    yield text

    def _walk_area(
        self,
        area: CompositionArea,
        ancestors: FrozenSet[ContentId],
    ) -> Iterator[str]:
        for slot in area.items:
            loaded = self._content_store.try_load(slot.content_link)

            match loaded:
                case Component():
                    key = loaded.content_link.to_unversioned()
                    if key in ancestors:
                        logger.warning(
                            "[Blocksearch] Component %s embeds one of its own ancestors. Skipping. (%s)",
                            loaded.content_link,
                            SkipReason.CYCLE.value,
                        )
                        continue
                    yield from self._walk(loaded, loaded.type_id, ancestors | {key})

                case Document():
                    _skip(
                        SkipReason.NOT_A_COMPONENT,
                        "Composition item %s is a document, probably used as a teaser. Skipping.",
                        loaded.content_link,
                    )

                case Unresolved() | None:
                    # Slots can dangle after a delete or a copy
                    _skip(
                        SkipReason.RESOLUTION_MISS,
                        "Composition item %s does not resolve. Skipping.",
                        slot.content_link,
                    )

    # ------------------------------------------------------------------
    # Internal Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _root_ancestors(item: Aggregatable) -> FrozenSet[ContentId]:
        content_link = getattr(item, "content_link", None)
        if content_link is None:
            return frozenset()
        return frozenset({content_link.to_unversioned()})

    def _finish(self, fragments: List[str]) -> str:
        joined = FRAGMENT_SEPARATOR.join(f for f in fragments if f.strip())
        return strip_markup(joined, self._max_length)
