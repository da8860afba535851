import traceback
import uuid
from typing import Optional
from contextvars import ContextVar
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from hello_weather.core.config_log import logger


request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

DECODE_ERROR_PREFIX = "Error decoding JSON request"


class WeatherAppException(Exception):
    """Базовый класс для всех исключений приложения."""
    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class RequestDecodeError(WeatherAppException):
    """Тело запроса не удалось разобрать в WeatherRequest."""
    def __init__(self, detail: str):
        super().__init__(message=f"{DECODE_ERROR_PREFIX}: {detail}", status_code=400)


class UpstreamTransportError(WeatherAppException):
    """Сетевая ошибка при обращении к внешнему API (DNS, соединение, таймаут)."""
    def __init__(self, detail: str):
        super().__init__(message=f"Failed to call API: {detail}", status_code=502)


class UpstreamStatusError(WeatherAppException):
    """Внешний API вернул статус, отличный от 200."""
    def __init__(self, upstream_status: int, upstream_message: Optional[str] = None):
        message = "Failed to call API."
        if upstream_message:
            message += f" Error: {upstream_message}"
        self.upstream_status = upstream_status
        super().__init__(message=message, status_code=502)


class UpstreamShapeError(WeatherAppException):
    """Ответ внешнего API не совпадает с ожидаемой структурой."""
    def __init__(self, source: str, detail: str):
        super().__init__(message=f"Unexpected response from {source} API: {detail}", status_code=502)


class LocationNotFoundError(WeatherAppException):
    """Геокодер не нашёл ни одного совпадения."""
    def __init__(self, location: str):
        super().__init__(message=f"Location not found: {location}", status_code=404)


class ResponseEncodeError(WeatherAppException):
    """Не удалось сериализовать успешный ответ в JSON."""
    def __init__(self, detail: str):
        super().__init__(message=f"Error encoding JSON response: {detail}", status_code=500)


def _status_for(request: Request, status_code: int) -> int:
    """Код ответа для ошибки: 200, если сопоставление кодов выключено."""
    settings = getattr(request.app.state, "settings", None)
    if settings is not None and settings.ERROR_STATUS_CODES:
        return status_code
    return 200


def create_error_response(status_code: int, message: str) -> JSONResponse:
    """Создает ответ вида {"error": "<message>"}."""
    return JSONResponse(status_code=status_code, content={"error": message})


def format_validation_errors(exc: ValidationError) -> str:
    """Собирает ошибки валидации Pydantic в одну строку без ссылок на документацию."""

    parts = []
    for error in exc.errors():
        loc = [str(x) for x in error.get("loc", [])]
        err_type = error.get("type")
        ctx = error.get("ctx") or {}

        if err_type == "json_invalid":
            reason = ctx.get("error")
            parts.append(f"invalid JSON ({reason})" if reason else "invalid JSON")
            continue

        raw_msg = error.get("msg", "")
        clean_msg = raw_msg.replace("Value error, ", "").replace("Assertion failed, ", "")
        parts.append(f"{'.'.join(loc)}: {clean_msg}" if loc else clean_msg)

    return "; ".join(parts) or "validation failed"


async def weather_app_exception_handler(request: Request, exc: WeatherAppException) -> JSONResponse:
    """Обработчик для всех исключений, наследующихся от WeatherAppException."""

    logger.warning(f"API Error: {exc.message} | Path: {request.url.path} | Request: {request_id_ctx.get()}")
    return create_error_response(_status_for(request, exc.status_code), exc.message)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Обработчик для стандартных HTTP исключений от Starlette (404, 405)."""

    return create_error_response(exc.status_code, str(exc.detail))


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Обработчик для всех непредвиденных исключений."""

    logger.error(f"Unhandled Exception: {type(exc).__name__}: {str(exc)} | Traceback: {traceback.format_exc()}")
    return create_error_response(_status_for(request, 500), "Internal server error")


async def request_id_middleware(request: Request, call_next):
    """Middleware: генерирует идентификатор запроса и кладёт его в контекст."""

    req_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    request_id_ctx.set(req_id)
    response = await call_next(request)
    response.headers["X-Request-ID"] = req_id
    return response


def setup_exception_handlers(app: FastAPI):
    """Настройка обработчиков исключений и middleware."""

    app.middleware("http")(request_id_middleware)
    app.add_exception_handler(WeatherAppException, weather_app_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
