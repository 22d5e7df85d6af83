# aggregation.py
"""Cálculos sobre los registros de la lámpara."""
from __future__ import annotations
from datetime import datetime, timedelta, tzinfo
from typing import List, Optional, Sequence

from errors import DataError
from models import Event, Histogram

HOURS_PER_DAY = 24
WINDOW = timedelta(hours=24)


def _as_aware(dt: datetime, tz: Optional[tzinfo]) -> datetime:
    if dt.tzinfo is not None:
        return dt
    if tz is not None:
        return dt.replace(tzinfo=tz)
    # naive => hora local de la máquina
    return dt.astimezone()


def aggregate(
    events: Sequence[Event],
    now: datetime,
    tz: Optional[tzinfo] = None,
) -> Histogram:
    """
    Histograma de encendidos por hora del día en las últimas 24 horas.

    Solo cuentan los eventos con state True y timestamp dentro de
    [now - 24h, now]. La hora se calcula en `tz` (hora local si es None);
    eventos de días distintos con la misma hora suman en el mismo bucket.
    """
    now = _as_aware(now, tz)
    window_start = now - WINDOW

    histogram = [0] * HOURS_PER_DAY
    for event in events:
        if not isinstance(event.timestamp, datetime):
            raise DataError(f"timestamp inválido: {event.timestamp!r}")
        if event.state is not True:
            continue
        ts = _as_aware(event.timestamp, tz)
        if window_start <= ts <= now:
            histogram[ts.astimezone(tz).hour] += 1
    return histogram


def count_switch_ons(events: Sequence[Event]) -> int:
    return sum(1 for e in events if e.state is True)


def last_registers(events: Sequence[Event], n: int = 10) -> List[Event]:
    """Últimos n registros, del más reciente al más antiguo (orden de la API)."""
    if n <= 0:
        return []
    return list(reversed(events[-n:]))


def format_on_time(total_seconds: Optional[float]) -> str:
    if total_seconds is None:
        return "0 horas"
    if total_seconds < 60:
        return f"{total_seconds:g} segundos"
    if total_seconds < 3600:
        return f"{int(total_seconds // 60)} minutos"
    return f"{int(total_seconds // 3600)} horas"


def format_consumption(value: Optional[float]) -> str:
    if value is None:
        return "—"
    return f"{value:.5f}"
