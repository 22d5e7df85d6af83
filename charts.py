# charts.py
from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Sequence

from matplotlib.axes import Axes
from matplotlib.ticker import MaxNLocator

from aggregation import HOURS_PER_DAY
from models import DeviceReading

HOURLY_TITLE = "Encendidos de la lámpara en las últimas 24 horas"

BAR_COLOR = (75 / 255, 192 / 255, 192 / 255, 0.6)
EDGE_COLOR = (75 / 255, 192 / 255, 192 / 255, 1.0)


@dataclass(frozen=True)
class BarChartSpec:
    """Descripción de un gráfico de barras, independiente del backend de dibujo."""
    title: str
    labels: List[str]
    values: List[float]
    x_title: Optional[str] = None
    y_title: Optional[str] = None
    begin_at_zero: bool = True
    integer_ticks: bool = True

    def pairs(self) -> List[tuple]:
        return list(zip(self.labels, self.values))


def hour_labels() -> List[str]:
    return [f"{h}:00" for h in range(HOURS_PER_DAY)]


def hourly_chart_spec(histogram: Sequence[int], title: str = HOURLY_TITLE) -> BarChartSpec:
    if len(histogram) != HOURS_PER_DAY:
        raise ValueError(f"El histograma debe tener {HOURS_PER_DAY} valores, tiene {len(histogram)}")
    return BarChartSpec(title=title, labels=hour_labels(), values=list(histogram))


def device_chart_spec(
    readings: Sequence[DeviceReading], data_key: str, title: str
) -> BarChartSpec:
    """Una barra por dispositivo con el valor `data_key` de cada lectura."""
    return BarChartSpec(
        title=title,
        labels=[str(r.device_id) for r in readings],
        values=[r.values.get(data_key) for r in readings],
        x_title="Device ID",
        y_title=data_key.replace("_", " ").upper(),
        integer_ticks=False,
    )


def draw_bar_chart(ax: Axes, spec: BarChartSpec) -> None:
    ax.clear()
    values = [0 if v is None else v for v in spec.values]
    ax.bar(spec.labels, values, color=BAR_COLOR, edgecolor=EDGE_COLOR, linewidth=1)
    ax.set_title(spec.title, fontsize=10)

    if spec.x_title:
        ax.set_xlabel(spec.x_title)
    if spec.y_title:
        ax.set_ylabel(spec.y_title)
    if spec.begin_at_zero:
        ax.set_ylim(bottom=0)
    if spec.integer_ticks:
        ax.yaxis.set_major_locator(MaxNLocator(integer=True))

    ax.tick_params(axis="x", labelrotation=45, labelsize=7)
    ax.grid(True, axis="y")
