from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from hello_weather.core.config_app import Settings
from hello_weather.core.config_log import logger
from hello_weather.core.http_client import get_settings

greeting_router = APIRouter()

GREETING_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


@greeting_router.api_route("/", methods=GREETING_METHODS, response_class=PlainTextResponse)
async def hello(request: Request, settings: Settings = Depends(get_settings)):
    """Приветствие, версия и имя хоста."""

    logger.info(f"Обработка запроса: {request.url.path}")
    return (
        "Hello, world!\n"
        f"Version: {settings.PROJECT_VERSION}\n"
        f"Hostname: {settings.HOSTNAME}\n"
    )


@greeting_router.get("/health")
async def health_check(settings: Settings = Depends(get_settings)):
    """Проверка здоровья приложения."""
    return {
        "status": "ok",
        "version": settings.PROJECT_VERSION,
        "service": settings.PROJECT_NAME,
        "mode": settings.WEATHER_MODE,
    }
