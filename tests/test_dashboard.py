"""Tests de la máquina de estados del panel."""
from datetime import datetime, timedelta, timezone

import pytest

from dashboard import (
    DashboardController,
    Failed,
    FetchFailed,
    FetchStarted,
    FetchSucceeded,
    Loading,
    Ready,
    reduce,
    status_text,
)
from errors import DataError, NetworkError
from models import DashboardData, Event, LampOnTime

UTC = timezone.utc


def _data(events):
    return DashboardData(registers=list(events), lamp_on_time=LampOnTime(60))


class FakeSource:
    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0

    def fetch_dashboard(self):
        self.calls += 1
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


def test_initial_state_is_loading(now):
    controller = DashboardController(source=FakeSource())
    assert isinstance(controller.state, Loading)


def test_success_moves_to_ready_with_histogram(now, make_event):
    data = _data([make_event(1), make_event(25)])

    state = reduce(Loading(1), FetchSucceeded(1, data, now), UTC)

    assert isinstance(state, Ready)
    assert state.data is data
    assert state.histogram[9] == 1
    assert sum(state.histogram) == 1
    assert state.fetched_at == now


def test_failure_moves_to_failed():
    error = NetworkError("timeout")

    state = reduce(Loading(1), FetchFailed(1, error))

    assert isinstance(state, Failed)
    assert state.error is error
    assert state.message == "timeout"


def test_stale_results_are_ignored(now):
    loading = Loading(2)

    assert reduce(loading, FetchSucceeded(1, _data([]), now)) is loading
    assert reduce(loading, FetchFailed(1, NetworkError("x"))) is loading


def test_results_outside_loading_are_ignored(now):
    failed = Failed(NetworkError("x"))
    assert reduce(failed, FetchSucceeded(1, _data([]), now)) is failed


def test_fetch_started_from_any_state(now):
    ready = Ready(data=_data([]), histogram=[0] * 24, fetched_at=now)
    assert reduce(ready, FetchStarted(5)) == Loading(5)
    assert reduce(Failed(NetworkError("x")), FetchStarted(6)) == Loading(6)


def test_bad_timestamp_during_aggregation_fails(now):
    bad = Event(timestamp="nope", state=True)  # type: ignore[arg-type]

    state = reduce(Loading(1), FetchSucceeded(1, _data([bad]), now))

    assert isinstance(state, Failed)
    assert isinstance(state.error, DataError)


def test_failed_message_falls_back_to_type_name():
    assert Failed(NetworkError()).message == "NetworkError"


def test_controller_refresh_uses_injected_clock(now, make_event):
    source = FakeSource(_data([make_event(1)]))
    controller = DashboardController(source=source, clock=lambda: now, tz=UTC)

    state = controller.refresh()

    assert isinstance(state, Ready)
    assert state.fetched_at == now
    assert state.histogram[9] == 1


def test_controller_failure_has_no_retry():
    source = FakeSource(NetworkError("down"))
    controller = DashboardController(source=source)

    state = controller.refresh()

    assert isinstance(state, Failed)
    assert source.calls == 1


def test_controller_refetch_reenters_ready(now, make_event):
    later = now + timedelta(hours=1)
    clock_values = iter([now, later])
    source = FakeSource(_data([make_event(1)]), _data([]))
    controller = DashboardController(source=source, clock=lambda: next(clock_values), tz=UTC)

    first = controller.refresh()
    second = controller.refresh()

    assert isinstance(first, Ready) and isinstance(second, Ready)
    assert second.fetched_at == later
    assert second.histogram == [0] * 24


def test_controller_notifies_listeners(now):
    seen = []
    controller = DashboardController(source=FakeSource(_data([])), clock=lambda: now)
    controller.subscribe(seen.append)

    controller.refresh()

    assert [type(s) for s in seen] == [Loading, Ready]


def test_superseded_request_is_dropped(now):
    source = FakeSource(_data([]), _data([]))
    controller = DashboardController(source=source, clock=lambda: now)

    first = controller.begin()
    second = controller.begin()
    late = controller.load(first)

    assert controller.dispatch(late) == Loading(second)
    assert isinstance(controller.fetch(second), Ready)


def test_closed_controller_ignores_results(now):
    seen = []
    controller = DashboardController(source=FakeSource(_data([])), clock=lambda: now)
    controller.subscribe(seen.append)
    request_id = controller.begin()
    seen.clear()

    controller.close()
    state = controller.fetch(request_id)

    assert state == Loading(request_id)
    assert controller.closed
    assert seen == []


def test_unknown_action_raises():
    with pytest.raises(TypeError):
        reduce(Loading(1), object(), None)  # type: ignore[arg-type]


def test_poll_keeps_in_flight_fetch(now):
    source = FakeSource(_data([]), _data([]))
    controller = DashboardController(source=source, clock=lambda: now)

    request_id = controller.begin()
    # varios ticks del timer mientras la lectura lenta sigue en curso
    assert controller.poll() is None
    assert controller.poll() is None
    result = controller.load(request_id)

    assert isinstance(controller.dispatch(result), Ready)
    assert source.calls == 1


def test_poll_starts_new_fetch_when_idle(now):
    source = FakeSource(_data([]), NetworkError("down"), _data([]))
    controller = DashboardController(source=source, clock=lambda: now)
    controller.refresh()

    after_ready = controller.poll()
    assert controller.state == Loading(after_ready)
    assert isinstance(controller.fetch(after_ready), Failed)

    after_failed = controller.poll()
    assert after_failed is not None
    assert isinstance(controller.fetch(after_failed), Ready)


def test_status_text_loading():
    assert status_text(Loading(3)) == "Cargando..."


def test_status_text_failed():
    assert status_text(Failed(NetworkError("timeout"))) == "Error: timeout"
    assert status_text(Failed(DataError())) == "Error: DataError"


def test_status_text_ready_is_empty(now):
    ready = Ready(data=_data([]), histogram=[0] * 24, fetched_at=now)
    assert status_text(ready) == ""


def test_controller_accepts_api_source(make_source):
    fetched_at = datetime(2024, 1, 2, 10, 0, tzinfo=UTC)
    controller = DashboardController(source=make_source(), clock=lambda: fetched_at, tz=UTC)

    state = controller.refresh()

    assert isinstance(state, Ready)
    assert state.histogram[9] == 1
    assert sum(state.histogram) == 1
