# dashboard.py
"""
Estado del panel principal: Loading -> Ready | Failed.

`reduce` es puro; `DashboardController` lo combina con la fuente de
datos y un reloj inyectable para que la ventana solo tenga que pintar.
"""
from __future__ import annotations
import itertools
from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from typing import Callable, Iterator, List, Optional, Protocol, Union

from aggregation import aggregate
from errors import DashboardError, DataError
from logging_setup import get_logger
from models import DashboardData, Histogram

logger = get_logger(__name__)


class DashboardSource(Protocol):
    def fetch_dashboard(self) -> DashboardData: ...


# ===================== ESTADOS =====================

@dataclass(frozen=True)
class Loading:
    request_id: int = 0


@dataclass(frozen=True)
class Ready:
    data: DashboardData
    histogram: Histogram
    fetched_at: datetime


@dataclass(frozen=True)
class Failed:
    error: Exception

    @property
    def message(self) -> str:
        return str(self.error) or type(self.error).__name__


DashboardState = Union[Loading, Ready, Failed]


# ===================== ACCIONES =====================

@dataclass(frozen=True)
class FetchStarted:
    request_id: int


@dataclass(frozen=True)
class FetchSucceeded:
    request_id: int
    data: DashboardData
    now: datetime


@dataclass(frozen=True)
class FetchFailed:
    request_id: int
    error: Exception


Action = Union[FetchStarted, FetchSucceeded, FetchFailed]


def reduce(state: DashboardState, action: Action, tz: Optional[tzinfo] = None) -> DashboardState:
    if isinstance(action, FetchStarted):
        return Loading(action.request_id)
    if not isinstance(action, (FetchSucceeded, FetchFailed)):
        raise TypeError(f"Acción desconocida: {action!r}")

    # resultados tardíos o de una petición ya reemplazada
    if not isinstance(state, Loading) or state.request_id != action.request_id:
        return state

    if isinstance(action, FetchFailed):
        return Failed(action.error)

    try:
        histogram = aggregate(action.data.registers, action.now, tz)
    except DataError as e:
        return Failed(e)
    return Ready(data=action.data, histogram=histogram, fetched_at=action.now)


def status_text(state: DashboardState) -> str:
    """Mensaje de la etiqueta de estado; vacío cuando hay datos."""
    if isinstance(state, Loading):
        return "Cargando..."
    if isinstance(state, Failed):
        return f"Error: {state.message}"
    return ""


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


Listener = Callable[[DashboardState], None]


@dataclass
class DashboardController:
    """
    Orquesta fetch -> aggregate -> estado.

    begin() abre una petición nueva y devuelve su id. load(id) hace la
    lectura bloqueante (pensado para un hilo de trabajo) y devuelve la
    acción resultante, que el hilo de la UI despacha con dispatch().
    Tras close() los resultados pendientes se descartan.
    """
    source: DashboardSource
    clock: Callable[[], datetime] = _utc_now
    tz: Optional[tzinfo] = None
    state: DashboardState = field(default_factory=Loading)
    _listeners: List[Listener] = field(default_factory=list, init=False, repr=False)
    _ids: Iterator[int] = field(default_factory=lambda: itertools.count(1), init=False, repr=False)
    _closed: bool = field(default=False, init=False)

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def dispatch(self, action: Action) -> DashboardState:
        if self._closed:
            return self.state
        new_state = reduce(self.state, action, self.tz)
        if new_state is not self.state:
            self.state = new_state
            for listener in list(self._listeners):
                listener(new_state)
        return self.state

    def begin(self) -> int:
        request_id = next(self._ids)
        self.dispatch(FetchStarted(request_id))
        return request_id

    def poll(self) -> Optional[int]:
        """begin() salvo que ya haya una lectura en curso (refresco periódico)."""
        if isinstance(self.state, Loading):
            return None
        return self.begin()

    def load(self, request_id: int) -> Action:
        try:
            data = self.source.fetch_dashboard()
        except DashboardError as e:
            logger.warning("Lectura %d fallida: %s", request_id, e)
            return FetchFailed(request_id, e)
        return FetchSucceeded(request_id, data, self.clock())

    def fetch(self, request_id: int) -> DashboardState:
        return self.dispatch(self.load(request_id))

    def refresh(self) -> DashboardState:
        """begin() + fetch() en el hilo actual."""
        return self.fetch(self.begin())

    def close(self) -> None:
        self._closed = True
        self._listeners.clear()
