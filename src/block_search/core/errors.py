"""
Error Taxonomy

This module defines the exceptions that cross the boundary between the
propagation core and its host collaborators.

Recovery Policy
---------------
- AccessDeniedError: recovered per document, the batch continues.
- SchemaResolutionError: treated as a resolution miss (empty schema).
- PersistenceError: surfaced to the host, never retried internally.

Resolution misses and type mismatches are not exceptions at all; they are
recorded as a `SkipReason` and logged.
"""

from __future__ import annotations

from enum import Enum


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class BlockSearchError(RuntimeError):
    """Base error for block search failures."""


class AccessDeniedError(BlockSearchError):
    """Raised by the content store when a save is rejected by the permission layer."""


class PersistenceError(BlockSearchError):
    """Raised by the content store for any other save failure."""


class SchemaResolutionError(BlockSearchError):
    """Raised by a content type repository when type metadata cannot be loaded."""


# ---------------------------------------------------------------------
# Locally Recovered Failures
# ---------------------------------------------------------------------

class SkipReason(str, Enum):
    """Why an item was left out of a traversal or a propagation batch."""

    RESOLUTION_MISS = "resolution_miss"
    TYPE_MISMATCH = "type_mismatch"
    NOT_A_COMPONENT = "not_a_component"
    NOT_A_DOCUMENT = "not_a_document"
    NOT_PUBLISHED = "not_published"
    CYCLE = "cycle"
