"""
Host event payloads delivered to the propagator.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator

from ..content.models import ContentId, Document, DocumentDraft
from .cycle import PropagationCycle

COMPONENT_PUBLISHED = "component_published"
DOCUMENT_PUBLISHING = "document_publishing"


@dataclass(frozen=True)
class ComponentPublishedEvent:
    """A component revision has been published."""
    content_link: ContentId


@dataclass
class DocumentPublishingEvent:
    """
    A document is about to be published.

    `document` is the snapshot the host will persist once every handler has
    run. Handlers change it only through `edit()`.
    """
    document: Document
    cycle: PropagationCycle = field(default_factory=PropagationCycle)

    @contextmanager
    def edit(self) -> Iterator[DocumentDraft]:
        """
        Open a draft of the in-flight document.

        On normal exit the committed draft replaces `document`, so the change
        is persisted by the enclosing save. If the block raises, the
        in-flight document is left untouched.
        """
        draft = self.document.open_draft()
        yield draft
        self.document = draft.commit()
