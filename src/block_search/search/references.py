"""
Reference Index Adapter

Inverted view over the host's soft links: given a component, which content
items embed it.
"""

from __future__ import annotations

import logging
from typing import List, Set

from ..content.models import ContentId, LinkKind
from ..content.protocols import SoftLinkRepository

logger = logging.getLogger("blocksearch.references")


class SoftLinkReferenceIndex:
    """
    Resolve owners of a target from reversed soft links.

    The host may return stale or duplicated links. Links of other kinds and
    links without an owner are dropped, and each owner is reported once, in
    the order first seen.
    """

    def __init__(self, soft_links: SoftLinkRepository) -> None:
        self._soft_links = soft_links

    def inverse_references(
        self,
        target: ContentId,
        kind: LinkKind = LinkKind.DOCUMENT_EMBEDS_CONTENT,
    ) -> List[ContentId]:
        owners: List[ContentId] = []
        seen: Set[ContentId] = set()

        for link in self._soft_links.load(target, reversed=True):
            if link.kind is not kind:
                continue

            owner = link.owner
            if owner is None or owner.is_empty:
                continue

            key = owner.to_unversioned()
            if key in seen:
                logger.debug(
                    "[Blocksearch] Duplicate reference from %s to %s ignored.",
                    owner,
                    target,
                )
                continue

            seen.add(key)
            owners.append(owner)

        return owners
