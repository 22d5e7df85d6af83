# models.py
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from errors import DataError


DeviceId = Union[int, str]


def parse_timestamp(value: Any) -> datetime:
    """Convierte un timestamp ISO-8601 (acepta sufijo 'Z') en datetime."""
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise DataError(f"timestamp inválido: {value!r}")
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError as e:
        raise DataError(f"timestamp inválido: {value!r}") from e


@dataclass(frozen=True)
class Event:
    timestamp: datetime
    state: bool
    device_id: Optional[DeviceId] = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Event":
        if not isinstance(raw, dict):
            raise DataError(f"registro inválido: {raw!r}")
        if "timestamp" not in raw:
            raise DataError("registro sin timestamp")
        state = raw.get("state")
        if not isinstance(state, bool):
            raise DataError(f"estado inválido: {state!r}")
        return cls(
            timestamp=parse_timestamp(raw["timestamp"]),
            state=state,
            device_id=raw.get("device_id"),
        )


Histogram = List[int]


@dataclass(frozen=True)
class LampOnTime:
    total_on_seconds: Optional[float] = None

    @classmethod
    def from_dict(cls, raw: Any) -> "LampOnTime":
        if not isinstance(raw, dict):
            raise DataError(f"lamp-on-time inválido: {raw!r}")
        total = raw.get("totalOnTimeLast24Hours")
        if total is not None and not isinstance(total, (int, float)):
            raise DataError(f"totalOnTimeLast24Hours inválido: {total!r}")
        return cls(total_on_seconds=total)


@dataclass(frozen=True)
class MonthlyConsumption:
    average_kwh: float
    cost: float

    @classmethod
    def from_dict(cls, raw: Any) -> "MonthlyConsumption":
        if not isinstance(raw, dict):
            raise DataError(f"monthly-consumption inválido: {raw!r}")
        try:
            return cls(
                average_kwh=float(raw["monthlyAverageConsumption"]),
                cost=float(raw["monthlyCost"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise DataError(f"monthly-consumption inválido: {raw!r}") from e


@dataclass(frozen=True)
class DeviceReading:
    device_id: DeviceId
    values: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Any) -> "DeviceReading":
        if not isinstance(raw, dict) or raw.get("device_id") is None:
            raise DataError(f"lectura sin device_id: {raw!r}")
        values = {k: v for k, v in raw.items() if k != "device_id"}
        return cls(device_id=raw["device_id"], values=values)


@dataclass(frozen=True)
class DashboardData:
    registers: List[Event]
    lamp_on_time: LampOnTime
    monthly_consumption: Optional[MonthlyConsumption] = None
