"""
Content-Type Schema Adapter

Wraps the host's content type repository so the aggregation layer never has
to care about how type metadata fails. An unknown type and a repository
error look the same from here: no fields.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from ..content.models import ContentType, FieldDef
from ..content.protocols import ContentTypeRepository
from ..core.errors import SchemaResolutionError

logger = logging.getLogger("blocksearch.schema")


class ContentTypeSchema:
    """
    Read-only view over content type metadata.
    """

    def __init__(self, repository: ContentTypeRepository) -> None:
        self._repository = repository

    def load(self, type_id: str) -> Optional[ContentType]:
        """
        Load a content type.

        Returns None when the type is unknown or the repository fails to
        resolve it.
        """
        try:
            content_type = self._repository.load(type_id)
        except SchemaResolutionError as exc:
            logger.warning(
                "[Blocksearch] Could not load content type '%s': %s",
                type_id,
                exc,
            )
            return None

        if content_type is None:
            logger.info("[Blocksearch] Content type '%s' is unknown.", type_id)

        return content_type

    def fields_of(self, type_id: str) -> List[FieldDef]:
        content_type = self.load(type_id)
        if content_type is None:
            return []
        return list(content_type.fields)

    def aggregated_search_field(self, type_id: str) -> Optional[FieldDef]:
        content_type = self.load(type_id)
        if content_type is None:
            return None
        return content_type.aggregated_search_field
