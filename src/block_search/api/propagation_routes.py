"""
Propagation Routes

Re-runs the component-published flow on demand, e.g. from a scheduled job
after a bulk import that bypassed publish events.

The handler is synchronous: the propagation core performs blocking content
store calls, so FastAPI runs it in its threadpool.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, status

from .auth import require_propagation_caller
from .dependencies import get_module
from ..content.models import ContentId
from ..core.errors import PersistenceError
from ..propagation.module import BlockSearchModule
from ..propagation.propagator import PropagationReport

logger = logging.getLogger("blocksearch.api")

router = APIRouter(prefix="/propagation", tags=["propagation"])


@router.post(
    "/components/{content_id}",
    response_model=PropagationReport,
    summary="Republish every published document embedding a component",
)
def propagate_component(
    content_id: Annotated[int, Path(ge=1)],
    caller: Annotated[str, Depends(require_propagation_caller)],
    module: Annotated[BlockSearchModule, Depends(get_module)],
) -> PropagationReport:
    """
    Access-denied owners are reported in the body. A content store failure
    stops the run and answers 503 so the caller's scheduler can retry.
    """
    component = ContentId(id=content_id)
    logger.info("[Blocksearch] Propagation of %s requested by '%s'.", component, caller)

    try:
        return module.propagator.update_parents(component)
    except PersistenceError as exc:
        logger.error("[Blocksearch] Propagation of %s stopped: %s", component, exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Content store rejected a republish.",
        )
