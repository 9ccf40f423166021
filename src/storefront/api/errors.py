"""Mapping of storefront failures to HTTP responses.

Domain errors (ValidationError, ObjectNotFoundError, ...) use protean's
FastAPI handlers. Access failures, request-shape errors and unrecoverable
code generation are added on top.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError
from protean.integrations.fastapi import register_exception_handlers as register_domain_exception_handlers

from storefront.access.exceptions import Forbidden, Unauthenticated
from storefront.loyalty.codes import CodeGenerationExhausted

logger = structlog.get_logger(__name__)


async def _invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": "bad_request", "messages": jsonable_encoder(exc.errors())})


async def _not_found(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": "not_found", "message": str(exc)})


async def _forbidden(request: Request, exc: Forbidden) -> JSONResponse:
    return JSONResponse(status_code=403, content={"error": "forbidden", "message": exc.message})


async def _unauthenticated(request: Request, exc: Unauthenticated) -> JSONResponse:
    return JSONResponse(status_code=401, content={"error": "unauthenticated", "message": exc.message})


async def _unrecoverable(request: Request, exc: CodeGenerationExhausted) -> JSONResponse:
    logger.error("Unrecoverable failure", path=request.url.path, prefix=exc.prefix, attempts=exc.attempts)
    return JSONResponse(status_code=500, content={"error": "unrecoverable", "messages": jsonable_encoder(exc.messages)})


def register_exception_handlers(app: FastAPI) -> None:
    register_domain_exception_handlers(app)

    # CodeGenerationExhausted is a ValidationError; Starlette picks the most specific class
    app.add_exception_handler(CodeGenerationExhausted, _unrecoverable)
    app.add_exception_handler(RequestValidationError, _invalid_request)
    app.add_exception_handler(ObjectNotFoundError, _not_found)
    app.add_exception_handler(Forbidden, _forbidden)
    app.add_exception_handler(Unauthenticated, _unauthenticated)
