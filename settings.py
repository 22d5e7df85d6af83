# settings.py
import json
import os
from pathlib import Path
from typing import Any, Dict

from logging_setup import get_logger

SETTINGS_FILE = Path("settings.json")
API_URL_ENV = "SMART_LIGHTING_API_URL"

DEFAULTS: Dict[str, Any] = {
    "api_base_url": "https://smart-lighting-system-api.onrender.com",
    "request_timeout": 10.0,   # segundos
    "refresh_interval": 0,     # segundos, 0 = una lectura por carga
    "dark_mode": False,
    "log_level": "INFO",
    # clave del valor a graficar en cada endpoint de sensores
    "sensor_keys": {
        "soil-moisture-data": "soil_moisture",
        "light-sensor-data": "light_level",
        "temperature-data": "temperature",
    },
}

logger = get_logger(__name__)


class SettingsManager:
    def __init__(self, path: Path = SETTINGS_FILE) -> None:
        self.path = path
        self._data: Dict[str, Any] = {}
        self.load()

    def load(self) -> None:
        if self.path.exists():
            try:
                self._data = json.loads(self.path.read_text(encoding="utf-8"))
            except json.JSONDecodeError:
                logger.warning("Fichero de configuración corrupto: %s", self.path)
                self._data = {}
        else:
            self._data = {}

    def save(self) -> None:
        self.path.write_text(json.dumps(self._data, indent=4), encoding="utf-8")

    def get(self, key: str, default: Any = None) -> Any:
        if key in self._data:
            return self._data[key]
        if default is None:
            return DEFAULTS.get(key)
        return default

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    # ==================== API ====================

    @property
    def api_base_url(self) -> str:
        return os.environ.get(API_URL_ENV) or self.get("api_base_url")

    @property
    def request_timeout(self) -> float:
        return float(self.get("request_timeout"))

    @property
    def refresh_interval(self) -> int:
        return int(self.get("refresh_interval"))

    @property
    def sensor_keys(self) -> Dict[str, str]:
        keys = dict(DEFAULTS["sensor_keys"])
        keys.update(self._data.get("sensor_keys", {}))
        return keys
