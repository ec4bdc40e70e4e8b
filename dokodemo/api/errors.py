"""
Обработчики ошибок (Exception Handlers) для API.

Сервисы бросают доменные исключения (core/errors.py). Здесь они
превращаются в HTTP ответы единого формата ErrorResponse:

    ValidationError -> 400 VALIDATION_ERROR
    NotFoundError   -> 404 NOT_FOUND
    ConflictError   -> 409 ALREADY_EXISTS
    StorageError    -> 503 STORAGE_ERROR
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..core.errors import (
    ConflictError,
    DokodemoError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from ..core.logging import get_logger
from .schemas import ErrorBody, ErrorDetail, ErrorResponse

logger = get_logger(__name__)

STATUS_BY_ERROR: dict[type[DokodemoError], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    StorageError: status.HTTP_503_SERVICE_UNAVAILABLE,
}

HTTP_ERROR_CODES = {
    status.HTTP_401_UNAUTHORIZED: "UNAUTHORIZED",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
}


def error_response(
    status_code: int, code: str, message: str, details: list[ErrorDetail] | None = None
) -> JSONResponse:
    """Собрать JSONResponse в формате ErrorResponse."""
    body = ErrorResponse(error=ErrorBody(code=code, message=message, details=details))
    return JSONResponse(status_code=status_code, content=body.model_dump())


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================


async def domain_error_handler(request: Request, exc: DokodemoError) -> JSONResponse:
    """Доменное исключение -> HTTP ответ с кодом из STATUS_BY_ERROR."""
    status_code = next(
        (code for error_type, code in STATUS_BY_ERROR.items() if isinstance(exc, error_type)),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )

    if isinstance(exc, StorageError):
        logger.error("Storage error", extra={"error": exc.message, "path": request.url.path})
        # Детали драйвера клиенту не показываем
        return error_response(status_code, exc.code, "Database is unavailable, try again later")

    logger.warning(
        "API error", extra={"code": exc.code, "error": exc.message, "path": request.url.path}
    )
    details = [ErrorDetail(field=exc.field, message=exc.message)] if exc.field else None
    return error_response(status_code, exc.code, exc.message, details)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """HTTPException (401 от verify_api_key, 404 неизвестного пути) в едином формате."""
    code = HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
    response = error_response(exc.status_code, code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Обработчик для ошибок валидации Pydantic (422).

    Pydantic: {"detail": [{"loc": ["body", "title"], "msg": "..."}]}
    Наш формат: {"error": {"code": "VALIDATION_ERROR", "details": [{"field": "title", ...}]}}
    """
    logger.warning("Request validation failed", extra={"errors": exc.errors()})

    details = []
    for error in exc.errors():
        field_path = error.get("loc", [])
        field_name = field_path[-1] if field_path else "unknown"

        # Если поле в body, убираем "body" из пути
        if len(field_path) > 1 and field_path[0] == "body":
            field_name = ".".join(str(p) for p in field_path[1:])

        details.append(ErrorDetail(field=str(field_name), message=error.get("msg", "Invalid value")))

    return error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "VALIDATION_ERROR",
        "Request validation failed",
        details,
    )


# =============================================================================
# РЕГИСТРАЦИЯ HANDLERS
# =============================================================================


def register_error_handlers(app: FastAPI) -> None:
    """
    Регистрирует все error handlers в приложении FastAPI.

    Вызывается из main.py:
        register_error_handlers(app)
    """
    app.add_exception_handler(DokodemoError, domain_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]
