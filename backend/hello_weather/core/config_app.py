import os
import socket
from typing import Optional
from dotenv import find_dotenv, load_dotenv

from .config_log import logger


MODE_LOCATION = "location"
MODE_COORDINATES = "coordinates"
WEATHER_MODES = (MODE_LOCATION, MODE_COORDINATES)

DEFAULT_PORT = 6068


def resolve_hostname() -> str:
    """Имя хоста процесса. При ошибке возвращает пустую строку."""
    try:
        return socket.gethostname()
    except OSError:
        return ""


class Settings:
    """Конфигурация приложения, загруженная из переменных окружения один раз при старте."""

    PROJECT_NAME = "hello-weather"
    PROJECT_VERSION = "1.0.0"
    PROJECT_DESCRIPTION = "Приветствие и вебхук погоды (OpenWeather) для диалогового агента"

    def __init__(self):
        if not load_dotenv(find_dotenv(usecwd=True), override=False):
            logger.debug("Не найден .env файл, используются переменные окружения или значения по умолчанию")

        # Сервер
        self.HOST: str = os.getenv("HOST", "0.0.0.0")
        self.PORT: int = self._parse_port(os.getenv("PORT"))
        self.HOSTNAME: str = resolve_hostname()

        # Погода
        self.WEATHER_MODE: str = os.getenv("WEATHER_MODE", MODE_LOCATION).strip().lower()
        self.WEATHER_UNITS: str = os.getenv("WEATHER_UNITS", "metric")
        self.GEOCODING_URL: str = os.getenv("GEOCODING_URL", "https://api.openweathermap.org/geo/1.0/direct")
        self.WEATHER_URL: str = os.getenv("WEATHER_URL", "https://api.openweathermap.org/data/2.5/weather")
        self.HTTP_TIMEOUT: float = float(os.getenv("HTTP_TIMEOUT", "10.0"))

        # Ошибки
        self.ERROR_STATUS_CODES: bool = os.getenv("ERROR_STATUS_CODES", "false").lower() == "true"

        self._validate_critical_settings()

    @staticmethod
    def _parse_port(raw: Optional[str]) -> int:
        if raw is None or not raw.strip():
            return DEFAULT_PORT
        try:
            port = int(raw)
        except ValueError:
            logger.error(f"PORT должен быть числом, получено: {raw!r}")
            raise ValueError(f"Invalid PORT value: {raw!r}")
        if not 0 < port < 65536:
            logger.error(f"PORT вне допустимого диапазона: {port}")
            raise ValueError(f"Invalid PORT value: {raw!r}")
        return port

    def _validate_critical_settings(self) -> None:
        """Проверяет критические настройки."""
        if self.WEATHER_MODE not in WEATHER_MODES:
            logger.error(f"WEATHER_MODE должен быть одним из {WEATHER_MODES}, получено: {self.WEATHER_MODE!r}")
            raise ValueError(f"Invalid WEATHER_MODE: {self.WEATHER_MODE!r}")
        if self.HTTP_TIMEOUT <= 0:
            logger.error("HTTP_TIMEOUT должен быть положительным")
            raise ValueError("HTTP_TIMEOUT must be positive")
        if not self.HOSTNAME:
            logger.warning("Не удалось определить имя хоста")

    @property
    def resolve_by_name(self) -> bool:
        """True, если координаты определяются по названию места через геокодер."""
        return self.WEATHER_MODE == MODE_LOCATION


settings = Settings()
