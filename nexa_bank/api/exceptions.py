from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..core.errors import NexaBankError


logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NexaBankError)
    async def nexa_bank_error_handler(request: Request, exc: NexaBankError) -> JSONResponse:
        logger.info(
            "request.rejected",
            extra={"path": request.url.path, "kind": exc.kind, "status_code": exc.status_code},
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.kind, "detail": str(exc)},
        )
