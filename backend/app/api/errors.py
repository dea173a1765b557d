from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.core.logging import get_logger
from app.services.errors import WorkError

logger = get_logger(__name__)


async def work_error_handler(request: Request, exc: WorkError) -> JSONResponse:
    logger.info(
        "api.error path=%s status=%s error=%s",
        request.url.path,
        exc.status_code,
        type(exc).__name__,
    )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(WorkError, work_error_handler)  # type: ignore[arg-type]
