# data_acquisition.py
from __future__ import annotations
from typing import Any, List, Optional

import httpx

from errors import DataError, NetworkError
from logging_setup import get_logger
from models import (
    DashboardData,
    DeviceReading,
    Event,
    LampOnTime,
    MonthlyConsumption,
)

logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://smart-lighting-system-api.onrender.com"

SENSOR_ENDPOINTS = (
    "soil-moisture-data",
    "light-sensor-data",
    "temperature-data",
)


class ApiDataSource:
    """
    Lee los datos del sistema de iluminación desde la API remota.

    Cada llamada hace una petición nueva; no hay caché ni reintentos.
    Los fallos de red se elevan como NetworkError y los payloads mal
    formados como DataError.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client or httpx.Client(base_url=self.base_url, timeout=timeout)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "ApiDataSource":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # ==================== HTTP ====================

    def _get_json(self, endpoint: str) -> Any:
        path = "/" + endpoint.lstrip("/")
        try:
            r = self._client.get(path)
            r.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("GET %s falló: %s", path, e)
            raise NetworkError(f"No se pudo obtener {path}: {e}") from e

        try:
            return r.json()
        except ValueError as e:
            raise DataError(f"Respuesta no es JSON válido en {path}") from e

    def _get_list(self, endpoint: str) -> List[Any]:
        payload = self._get_json(endpoint)
        if not isinstance(payload, list):
            raise DataError(f"/{endpoint} debe devolver una lista")
        return payload

    # ==================== ENDPOINTS ====================

    def fetch_registers(self) -> List[Event]:
        events: List[Event] = []
        for index, raw in enumerate(self._get_list("registers")):
            try:
                events.append(Event.from_dict(raw))
            except DataError as e:
                raise DataError(f"registro #{index}: {e}") from e
        logger.debug("Recibidos %d registros", len(events))
        return events

    def fetch_lamp_on_time(self) -> LampOnTime:
        return LampOnTime.from_dict(self._get_json("lamp-on-time"))

    def fetch_monthly_consumption(self) -> MonthlyConsumption:
        return MonthlyConsumption.from_dict(self._get_json("monthly-consumption"))

    def fetch_sensor_data(self, endpoint: str) -> List[DeviceReading]:
        if endpoint not in SENSOR_ENDPOINTS:
            raise ValueError(f"Endpoint de sensores desconocido: {endpoint}")
        return [DeviceReading.from_dict(raw) for raw in self._get_list(endpoint)]

    def fetch_dashboard(self) -> DashboardData:
        """Lee los tres recursos del panel principal; falla si falla cualquiera."""
        lamp_on_time = self.fetch_lamp_on_time()
        registers = self.fetch_registers()
        monthly = self.fetch_monthly_consumption()
        logger.info("Dashboard actualizado: %d registros", len(registers))
        return DashboardData(
            registers=registers,
            lamp_on_time=lamp_on_time,
            monthly_consumption=monthly,
        )
