from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class WeatherRequest(BaseModel):
    """Запрос клиента: название места или координаты, плюс ключ API погоды."""
    model_config = ConfigDict(populate_by_name=True)

    location: Optional[str] = Field(None, min_length=1, max_length=200, description="Название места в свободной форме")
    lat: Optional[float] = Field(None, strict=True, ge=-90, le=90, description="Широта в градусах от -90 до 90")
    lon: Optional[float] = Field(None, strict=True, ge=-180, le=180, description="Долгота в градусах от -180 до 180")
    api_key: str = Field(..., alias="apiKey", min_length=1, description="Ключ OpenWeather, передаётся как есть")


# Ответы внешних API

class GeocodeCandidate(BaseModel):
    """Одно совпадение геокодера. Используется только первое."""
    lat: float
    lon: float
    name: Optional[str] = None
    country: Optional[str] = None
    state: Optional[str] = None


GeocodeResult = TypeAdapter(List[GeocodeCandidate])


class WeatherCondition(BaseModel):
    description: str


class WeatherMain(BaseModel):
    temp_min: float
    temp_max: float


class WeatherResult(BaseModel):
    """Нужная нам часть ответа /data/2.5/weather."""
    weather: List[WeatherCondition] = Field(..., min_length=1)
    main: Optional[WeatherMain] = None


class UpstreamErrorBody(BaseModel):
    message: Optional[str] = None


# Ответ диалоговому агенту

class SessionParameters(BaseModel):
    summary: str
    temp_min: Optional[float] = None
    temp_max: Optional[float] = None
    lat: Optional[float] = None
    lon: Optional[float] = None


class SessionInfo(BaseModel):
    parameters: SessionParameters


class SessionResponse(BaseModel):
    """Обёртка sessionInfo.parameters, которую ожидает вызывающий агент."""
    model_config = ConfigDict(populate_by_name=True)

    session_info: SessionInfo = Field(..., alias="sessionInfo")

    def to_payload(self) -> dict:
        """Словарь для JSON-ответа: camelCase ключи, без пустых полей."""
        return self.model_dump(by_alias=True, exclude_none=True)
