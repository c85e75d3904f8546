from fastapi import HTTPException, Request, status

from ..propagation.module import BlockSearchModule


def get_module(request: Request) -> BlockSearchModule:
    module = getattr(request.app.state, "blocksearch", None)
    if module is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Block search module is not configured.",
        )
    return module
