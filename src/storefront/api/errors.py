"""Map application errors to JSON error responses.

Learn: Every error body has the same shape:

    {"success": false, "message": "...", "code": "..."}

message strings for auth failures are part of the client contract
("Access token required", "Invalid or expired token", ...), so they
come from the AuthError classes and are never reworded here.
Request validation failures use the same shape (422, code
ValidationError) instead of FastAPI's default {"detail": [...]}.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from storefront.errors import AuthError, Conflict, NotFound, StoreUnavailable

logger = structlog.get_logger()


def error_response(status_code: int, message: str, code: str, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, "code": code},
        headers=headers,
    )


async def handle_auth_error(request: Request, exc: AuthError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return error_response(exc.status_code, exc.message, exc.code, headers)


async def handle_not_found(request: Request, exc: NotFound) -> JSONResponse:
    return error_response(404, exc.message, "NotFound")


async def handle_conflict(request: Request, exc: Conflict) -> JSONResponse:
    return error_response(409, exc.message, "Conflict")


async def handle_store_unavailable(request: Request, exc: StoreUnavailable) -> JSONResponse:
    logger.error(
        "storefront.request.store_unavailable",
        path=request.url.path,
        operation=exc.operation,
    )
    return error_response(503, "Service temporarily unavailable", "StoreUnavailable")


async def handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    if not errors:
        return error_response(422, "Invalid request", "ValidationError")
    first = errors[0]
    # Drop the "body"/"query" prefix FastAPI puts on every location
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    message = f"{field}: {first['msg']}" if field else first["msg"]
    return error_response(422, message, "ValidationError")


async def handle_http_exception(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return error_response(
        exc.status_code, str(exc.detail), "HTTPError", getattr(exc, "headers", None)
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AuthError, handle_auth_error)
    app.add_exception_handler(NotFound, handle_not_found)
    app.add_exception_handler(Conflict, handle_conflict)
    app.add_exception_handler(StoreUnavailable, handle_store_unavailable)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
