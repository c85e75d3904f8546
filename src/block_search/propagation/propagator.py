"""
Block Search Propagator

This module keeps each document's aggregated search field in sync with the
components it embeds. It reacts to two host triggers:

1. A component was published.
   Every published document that embeds it is republished, so the host
   raises a fresh document-publishing event for it.

2. A document is about to be published.
   The text of the components in its composition fields is aggregated and
   written into the document's aggregated search field, inside the same
   save.

Reentrancy
----------
Step 2 runs at most once per propagation cycle. The cycle is handed over by
the host with the event, and the propagator's own republish saves open a
new cycle that is closed when the save returns, even if it raises.

Failure Semantics
-----------------
- Access denied on a republish: logged per document, the batch continues.
- Missing or non-text aggregate target: silent no-op for that document.
- Aggregation error while a document is publishing: logged, the document
  is published without a new aggregate.
- Any other save failure: propagated to the host, not retried.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ..content.models import (
    AccessLevel,
    Component,
    ContentId,
    Document,
    LinkKind,
    REPUBLISH_INTENT,
    Unresolved,
)
from ..content.protocols import ContentStore, ReferenceIndex
from ..core.errors import AccessDeniedError, SkipReason
from ..search.aggregator import Aggregator
from ..search.schema import ContentTypeSchema
from .cycle import propagation_cycle
from .events import ComponentPublishedEvent, DocumentPublishingEvent

logger = logging.getLogger("blocksearch.propagator")


# ---------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------

class SkippedOwner(BaseModel):
    content_link: ContentId
    reason: SkipReason

    model_config = ConfigDict(frozen=True, extra="forbid")


class PropagationReport(BaseModel):
    """
    Outcome of propagating one component publish to its owners.
    """

    component: ContentId
    republished: List[ContentId] = Field(default_factory=list)
    skipped: List[SkippedOwner] = Field(default_factory=list)
    access_denied: List[ContentId] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------
# Propagator
# ---------------------------------------------------------------------

class Propagator:
    """
    Orchestrates republishing and aggregate computation.
    """

    def __init__(
        self,
        content_store: ContentStore,
        reference_index: ReferenceIndex,
        aggregator: Aggregator,
        schema: ContentTypeSchema,
    ) -> None:
        self._content_store = content_store
        self._reference_index = reference_index
        self._aggregator = aggregator
        self._schema = schema

    # ------------------------------------------------------------------
    # Event Handlers
    # ------------------------------------------------------------------

    def on_component_published(self, event: ComponentPublishedEvent) -> PropagationReport:
        return self.update_parents(event.content_link)

    def on_document_publishing(self, event: DocumentPublishingEvent) -> None:
        """
        Write the aggregated search field into the in-flight document.
        """
        cycle = event.cycle
        if cycle.in_flight:
            logger.debug(
                "[Blocksearch] Aggregation already done in cycle %s. Skipping.",
                cycle.cycle_id,
            )
            return

        document = event.document

        try:
            update = self._aggregate_for(document)
        except Exception:
            logger.exception(
                "[Blocksearch] Aggregation failed for page named '%s'. Publishing it unchanged.",
                document.name,
            )
            return

        if update is None:
            return

        field_name, text = update

        with event.edit() as draft:
            draft.set_field(field_name, text)

        cycle.begin_aggregation()

        logger.info(
            "[Blocksearch] Updated '%s' on page named '%s' (%d chars).",
            field_name,
            document.name,
            len(text),
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def update_parents(self, component_link: ContentId) -> PropagationReport:
        """
        Republish every published document that embeds a component.

        Parameters
        ----------
        component_link : ContentId
            The component that was published.

        Returns
        -------
        PropagationReport
            Which owners were republished, skipped, or rejected.

        Raises
        ------
        PersistenceError
            If a republish fails for any reason other than access rights.
        """
        report = PropagationReport(component=component_link)

        owners = self._reference_index.inverse_references(
            component_link,
            LinkKind.DOCUMENT_EMBEDS_CONTENT,
        )

        for owner in owners:
            loaded = self._content_store.try_load(owner)

            match loaded:
                case Document() if loaded.is_published:
                    self._republish(loaded, report)

                case Document():
                    logger.info(
                        "[Blocksearch] page named '%s' is not published. Skipping update.",
                        loaded.name,
                    )
                    report.skipped.append(
                        SkippedOwner(content_link=owner, reason=SkipReason.NOT_PUBLISHED)
                    )

                case Component() | Unresolved() | None:
                    logger.info(
                        "[Blocksearch] Referencing content %s is not a page. Skipping update.",
                        owner,
                    )
                    report.skipped.append(
                        SkippedOwner(content_link=owner, reason=SkipReason.NOT_A_DOCUMENT)
                    )

        return report

    # ------------------------------------------------------------------
    # Internal Helpers
    # ------------------------------------------------------------------

    def _republish(self, document: Document, report: PropagationReport) -> None:
        try:
            with propagation_cycle() as cycle:
                self._content_store.save(
                    document.open_draft().commit(),
                    REPUBLISH_INTENT,
                    AccessLevel.NO_ACCESS,
                    cycle=cycle,
                )
        except AccessDeniedError as exc:
            logger.warning(
                "[Blocksearch] Not enough access rights to republish containing page named '%s': %s",
                document.name,
                exc,
            )
            report.access_denied.append(document.content_link)
            return

        report.republished.append(document.content_link)

    def _aggregate_for(self, document: Document) -> Optional[Tuple[str, str]]:
        target = self._schema.aggregated_search_field(document.type_id)

        if target is None:
            return None

        if not target.is_text:
            logger.debug(
                "[Blocksearch] Field '%s' on type '%s' is not a text field. Skipping.",
                target.name,
                document.type_id,
            )
            return None

        return target.name, self._aggregator.aggregate_compositions(document)
