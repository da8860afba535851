from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
import httpx

from hello_weather.core.config_app import Settings
from hello_weather.core.config_log import logger
from hello_weather.core.exceptions import ResponseEncodeError
from hello_weather.core.http_client import get_http_client, get_settings
from hello_weather.weather.schemas import WeatherRequest
from hello_weather.weather.services import decode_weather_request, get_weather_service

weather_router = APIRouter()

# Тело разбираем сами, поэтому схему для OpenAPI указываем явно
WEATHER_REQUEST_BODY = {
    "requestBody": {
        "required": True,
        "content": {"application/json": {"schema": WeatherRequest.model_json_schema(by_alias=True)}},
    }
}


@weather_router.post("/weather", openapi_extra=WEATHER_REQUEST_BODY)
async def get_weather(
    request: Request,
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
):
    """Погода для диалогового агента по названию места или координатам."""

    logger.info(f"Обработка запроса: {request.url.path}")

    payload = decode_weather_request(await request.body())
    service = get_weather_service(client, settings)
    session = await service.get_session_response(payload)

    try:
        return JSONResponse(content=session.to_payload())
    except (TypeError, ValueError) as e:
        raise ResponseEncodeError(str(e))
