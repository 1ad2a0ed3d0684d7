"""Map measurement core errors onto JSON HTTP responses."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from .errors import MeasurementError

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers with the FastAPI app."""

    @app.exception_handler(MeasurementError)
    async def measurement_error_handler(request: Request,
                                        exc: MeasurementError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        else:
            logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request,
                                      exc: IntegrityError) -> JSONResponse:
        logger.warning("Integrity error on %s %s: %s",
                       request.method, request.url.path, exc.orig)
        return JSONResponse(
            status_code=409,
            content={
                "error": "Duplicate entry",
                "error_type": "integrity",
                "details": None,
            },
        )
