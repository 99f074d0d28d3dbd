from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder

from .. import errors, schemas

logger = logging.getLogger(__name__)

# Most specific first; the first isinstance match wins.
STATUS_BY_ERROR = (
    (errors.CompensationFailure, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (errors.ValidationError, status.HTTP_400_BAD_REQUEST),
    (errors.NotFound, status.HTTP_404_NOT_FOUND),
    (errors.InsufficientInventory, status.HTTP_409_CONFLICT),
    (errors.ClosedOrderImmutable, status.HTTP_409_CONFLICT),
    (errors.AlreadyClosed, status.HTTP_409_CONFLICT),
    (errors.InUseError, status.HTTP_409_CONFLICT),
    (errors.AdjustConflict, status.HTTP_409_CONFLICT),
    (errors.PersistenceError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def status_for(exc: errors.HotCoffeeError) -> int:
    for error_type, code in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_400_BAD_REQUEST


async def handle_domain_error(request: Request, exc: errors.HotCoffeeError) -> JSONResponse:
    code = status_for(exc)
    if isinstance(exc, errors.CompensationFailure):
        logger.critical("%s %s left inconsistent state: %s", request.method, request.url.path, exc.detail)
    body = schemas.ErrorOut(error=exc.message, detail=exc.detail)
    return JSONResponse(status_code=code, content=jsonable_encoder(body))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(errors.HotCoffeeError, handle_domain_error)
