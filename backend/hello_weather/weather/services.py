from typing import Any, Dict, Optional, Tuple
import httpx
from pydantic import ValidationError

from hello_weather.core.config_app import Settings
from hello_weather.core.config_log import logger
from hello_weather.core.exceptions import (
    LocationNotFoundError,
    RequestDecodeError,
    UpstreamShapeError,
    UpstreamStatusError,
    UpstreamTransportError,
    format_validation_errors,
)
from hello_weather.weather.schemas import (
    GeocodeCandidate,
    GeocodeResult,
    SessionInfo,
    SessionParameters,
    SessionResponse,
    UpstreamErrorBody,
    WeatherRequest,
    WeatherResult,
)


def decode_weather_request(body: bytes) -> WeatherRequest:
    """Разбирает тело запроса как JSON независимо от Content-Type."""
    try:
        return WeatherRequest.model_validate_json(body)
    except ValidationError as e:
        raise RequestDecodeError(format_validation_errors(e))


def _upstream_message(response: httpx.Response) -> Optional[str]:
    """Поле message из тела ошибки внешнего API, если оно есть и это строка."""
    try:
        return UpstreamErrorBody.model_validate(response.json()).message
    except (ValueError, ValidationError):
        return None


class WeatherService:
    """
    Получение погоды для диалогового агента.
    В режиме location сначала определяет координаты через геокодер OpenWeather,
    в режиме coordinates берёт lat/lon прямо из запроса.
    """

    def __init__(self, client: httpx.AsyncClient, settings: Settings):
        self.client = client
        self.settings = settings

    async def _get_json(self, source: str, url: str, params: Dict[str, Any]) -> Any:
        """GET к внешнему API. Возвращает разобранный JSON или бросает типизированную ошибку."""

        # appid в лог не пишем
        safe_params = {k: v for k, v in params.items() if k != "appid"}
        logger.debug(f"Запрос к {source} API: {url} {safe_params}")
        try:
            response = await self.client.get(url, params=params)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"{source} API: ошибка подключения: {str(e)[:100]}")
            raise UpstreamTransportError(str(e) or type(e).__name__)

        if response.status_code != 200:
            message = _upstream_message(response)
            logger.warning(f"{source} API вернул {response.status_code}: {message}")
            raise UpstreamStatusError(response.status_code, message)

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamShapeError(source, f"invalid JSON ({e})")

    async def geocode(self, location: str, api_key: str) -> GeocodeCandidate:
        """Первое совпадение геокодера для названия места."""

        data = await self._get_json(
            "geocoding",
            self.settings.GEOCODING_URL,
            {"q": location, "limit": 1, "appid": api_key},
        )
        try:
            candidates = GeocodeResult.validate_python(data)
        except ValidationError as e:
            raise UpstreamShapeError("geocoding", format_validation_errors(e))

        if not candidates:
            raise LocationNotFoundError(location)
        return candidates[0]

    async def fetch_weather(self, lat: float, lon: float, api_key: str, units: Optional[str] = None) -> WeatherResult:
        """Текущая погода по координатам."""

        params: Dict[str, Any] = {"lat": lat, "lon": lon, "appid": api_key}
        if units:
            params["units"] = units

        data = await self._get_json("weather", self.settings.WEATHER_URL, params)
        try:
            return WeatherResult.model_validate(data)
        except ValidationError as e:
            raise UpstreamShapeError("weather", format_validation_errors(e))

    def _coordinates_from_request(self, request: WeatherRequest) -> Tuple[float, float]:
        if request.lat is None or request.lon is None:
            missing = [name for name in ("lat", "lon") if getattr(request, name) is None]
            raise RequestDecodeError("; ".join(f"{name}: Field required" for name in missing))
        return request.lat, request.lon

    async def get_session_response(self, request: WeatherRequest) -> SessionResponse:
        """Полный конвейер: (геокодинг) -> погода -> параметры сессии."""

        if not self.settings.resolve_by_name:
            lat, lon = self._coordinates_from_request(request)
            result = await self.fetch_weather(lat, lon, request.api_key)
            parameters = SessionParameters(summary=result.weather[0].description)
            return SessionResponse(session_info=SessionInfo(parameters=parameters))

        if not request.location:
            raise RequestDecodeError("location: Field required")

        candidate = await self.geocode(request.location, request.api_key)
        logger.debug(f"Геокодер: {request.location!r} -> ({candidate.lat}, {candidate.lon})")

        result = await self.fetch_weather(
            candidate.lat, candidate.lon, request.api_key, units=self.settings.WEATHER_UNITS
        )
        if result.main is None:
            raise UpstreamShapeError("weather", "main: Field required")

        parameters = SessionParameters(
            summary=result.weather[0].description,
            temp_min=result.main.temp_min,
            temp_max=result.main.temp_max,
            lat=candidate.lat,
            lon=candidate.lon,
        )
        return SessionResponse(session_info=SessionInfo(parameters=parameters))


def get_weather_service(client: httpx.AsyncClient, settings: Settings) -> WeatherService:
    return WeatherService(client, settings)
