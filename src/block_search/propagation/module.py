"""
Block Search Module

Wires the propagation core out of the host's collaborators and registers
its two handlers on the host event bus.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..config import settings
from ..content.protocols import (
    ContentEvents,
    ContentStore,
    ContentTypeRepository,
    SoftLinkRepository,
)
from ..search.aggregator import Aggregator
from ..search.references import SoftLinkReferenceIndex
from ..search.schema import ContentTypeSchema
from .events import COMPONENT_PUBLISHED, DOCUMENT_PUBLISHING
from .propagator import Propagator

logger = logging.getLogger("blocksearch.module")


class BlockSearchModule:
    """
    Host integration point.

    `initialize()` and `uninitialize()` are idempotent so they can be tied
    to any host lifecycle, including repeated test setups.
    """

    def __init__(
        self,
        content_store: ContentStore,
        soft_links: SoftLinkRepository,
        content_types: ContentTypeRepository,
        events: ContentEvents,
        aggregate_max_length: Optional[int] = None,
    ) -> None:
        if aggregate_max_length is None:
            aggregate_max_length = settings.aggregate_max_length

        self.content_store = content_store
        self.events = events
        self.schema = ContentTypeSchema(content_types)
        self.reference_index = SoftLinkReferenceIndex(soft_links)
        self.aggregator = Aggregator(
            content_store,
            self.schema,
            max_length=aggregate_max_length,
        )
        self.propagator = Propagator(
            content_store,
            self.reference_index,
            self.aggregator,
            self.schema,
        )
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> None:
        if self._initialized:
            return

        self.events.subscribe(COMPONENT_PUBLISHED, self.propagator.on_component_published)
        self.events.subscribe(DOCUMENT_PUBLISHING, self.propagator.on_document_publishing)
        self._initialized = True

        logger.info("[Blocksearch] Initialized.")

    def uninitialize(self) -> None:
        if not self._initialized:
            return

        self.events.unsubscribe(COMPONENT_PUBLISHED, self.propagator.on_component_published)
        self.events.unsubscribe(DOCUMENT_PUBLISHING, self.propagator.on_document_publishing)
        self._initialized = False

        logger.info("[Blocksearch] Uninitialized.")
