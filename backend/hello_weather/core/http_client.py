from typing import AsyncGenerator
from fastapi import Depends, Request
import httpx

from hello_weather.core.config_app import Settings


def get_settings(request: Request) -> Settings:
    """Настройки, собранные при старте и переданные в приложение."""
    return request.app.state.settings


async def get_http_client(settings: Settings = Depends(get_settings)) -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP клиент для внешних API на время одного запроса."""
    async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT) as client:
        yield client
