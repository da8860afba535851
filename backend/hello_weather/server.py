import socket
import sys
from contextlib import asynccontextmanager
from typing import Optional
import uvicorn
from fastapi import FastAPI

from hello_weather.core.config_app import Settings, settings as default_settings
from hello_weather.core.config_log import logger
from hello_weather.core.exceptions import setup_exception_handlers
from hello_weather.greeting.routes import greeting_router
from hello_weather.weather.routes import weather_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Управление жизненным циклом приложения."""
    settings: Settings = app.state.settings
    logger.info(f"Запуск приложения {settings.PROJECT_NAME} {settings.PROJECT_VERSION}")
    logger.info(f"Режим погоды: {settings.WEATHER_MODE}, хост: {settings.HOSTNAME or '<неизвестен>'}")
    try:
        yield  # Приложение работает здесь
    finally:
        logger.info("Приложение остановлено")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Собирает приложение. Настройки создаются один раз и живут в app.state."""
    settings = settings or default_settings

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.PROJECT_VERSION,
        description=settings.PROJECT_DESCRIPTION,
        lifespan=lifespan,
    )
    app.state.settings = settings

    setup_exception_handlers(app)

    app.include_router(greeting_router, tags=["Greeting"])
    app.include_router(weather_router, tags=["Weather"])
    return app


def bind_socket(host: str, port: int) -> socket.socket:
    """Занимает порт до старта uvicorn, чтобы ошибка привязки попала в наш лог."""
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    sock = socket.socket(family, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        sock.bind((host, port))
    except OSError:
        sock.close()
        raise
    return sock


def run(settings: Optional[Settings] = None) -> None:
    """Запуск сервера. Ошибка привязки к порту завершает процесс с кодом 1."""
    settings = settings or default_settings

    try:
        sock = bind_socket(settings.HOST, settings.PORT)
    except OSError as e:
        logger.critical(f"Не удалось запустить сервер на {settings.HOST}:{settings.PORT}: {e}")
        sys.exit(1)

    logger.info(f"Сервер слушает порт {settings.PORT}")
    config = uvicorn.Config(
        create_app(settings),
        host=settings.HOST,
        port=settings.PORT,
        workers=1,
        log_level="info",
    )
    uvicorn.Server(config).run(sockets=[sock])
