"""Unified ``{"success": false, "error": {"code", "message"}}`` error envelope."""

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.exceptions import DomainException
from .core.messages import DEFAULT_LOCALE, translate

logger = logging.getLogger(__name__)

_CODE_BY_STATUS = {
    400: "INVALID_INPUT",
    403: "EMAIL_MISMATCH",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "SLOT_TAKEN",
    503: "REMOTE_UNAVAILABLE",
}


def _envelope(code: str, message: str) -> dict[str, Any]:
    return {"success": False, "error": {"code": code, "message": message}}


def _parse_detail(detail: Any) -> tuple[Optional[str], Optional[str]]:
    if isinstance(detail, dict):
        code = detail.get("code") if isinstance(detail.get("code"), str) else None
        message = detail.get("message")
        return (message if isinstance(message, str) else None), code
    if isinstance(detail, str):
        return detail, None
    return None, None


def _locale(request: Request) -> str:
    config = getattr(request.app.state, "engine_config", None)
    return config.locale if config is not None else DEFAULT_LOCALE


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(DomainException)
    async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
        return JSONResponse(
            {"success": False, "error": exc.to_error_payload(_locale(request))},
            status_code=exc.status_code,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message, code = _parse_detail(exc.detail)
        return JSONResponse(
            _envelope(
                code or _CODE_BY_STATUS.get(exc.status_code, "INTERNAL_ERROR"),
                message or translate("internal_error", _locale(request)),
            ),
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = jsonable_encoder(exc.errors())
        logger.info("Request validation failed on %s: %s", request.url.path, errors)
        message = translate("invalid_input", _locale(request))
        if errors:
            first = errors[0]
            field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            message = f"{message}: {field} {first.get('msg', '')}".strip()
        return JSONResponse(
            _envelope("INVALID_INPUT", message),
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled error on %s: %s", request.url.path, exc, exc_info=True)
        return JSONResponse(
            _envelope("INTERNAL_ERROR", translate("internal_error", _locale(request))),
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
