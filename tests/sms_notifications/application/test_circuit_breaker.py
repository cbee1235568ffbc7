"""Application tests for the async circuit breaker."""

import asyncio

import pytest

from sms_notifications.resilience import CircuitBreaker, CircuitOpenError, CircuitState


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class Boom(Exception):
    pass


async def _fail():
    raise Boom("gateway down")


async def _ok():
    return "ok"


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def breaker(clock):
    return CircuitBreaker(
        "test",
        volume_threshold=3,
        error_threshold_percentage=50.0,
        reset_timeout=30.0,
        window_size=10,
        clock=clock,
    )


async def _trip(breaker):
    for _ in range(3):
        with pytest.raises(Boom):
            await breaker.call(_fail)


class TestClosed:
    async def test_successful_calls_pass_through(self, breaker):
        assert await breaker.call(_ok) == "ok"
        assert breaker.state is CircuitState.CLOSED

    async def test_stays_closed_below_volume_threshold(self, breaker):
        for _ in range(2):
            with pytest.raises(Boom):
                await breaker.call(_fail)
        assert breaker.state is CircuitState.CLOSED

    async def test_stays_closed_below_error_percentage(self, breaker):
        for _ in range(3):
            await breaker.call(_ok)
        for _ in range(2):
            with pytest.raises(Boom):
                await breaker.call(_fail)
        # 2 failures out of 5 calls
        assert breaker.state is CircuitState.CLOSED

    async def test_opens_after_threshold(self, breaker):
        await _trip(breaker)
        assert breaker.state is CircuitState.OPEN
        assert breaker.open_events == 1


class TestOpen:
    async def test_rejects_without_invoking_operation(self, breaker):
        await _trip(breaker)
        calls = []

        async def operation():
            calls.append(1)
            return "ok"

        with pytest.raises(CircuitOpenError) as exc:
            await breaker.call(operation)

        assert calls == []
        assert exc.value.state is CircuitState.OPEN
        assert exc.value.retry_after == pytest.approx(30.0)
        assert breaker.rejected_calls == 1

    async def test_half_opens_after_reset_timeout(self, breaker, clock):
        await _trip(breaker)
        clock.advance(30.0)

        assert await breaker.call(_ok) == "ok"
        assert breaker.state is CircuitState.CLOSED
        assert breaker.snapshot()["window_calls"] == 0

    async def test_still_open_just_before_reset_timeout(self, breaker, clock):
        await _trip(breaker)
        clock.advance(29.9)
        with pytest.raises(CircuitOpenError):
            await breaker.call(_ok)


class TestHalfOpen:
    async def test_failed_trial_reopens(self, breaker, clock):
        await _trip(breaker)
        clock.advance(30.0)

        with pytest.raises(Boom):
            await breaker.call(_fail)

        assert breaker.state is CircuitState.OPEN
        assert breaker.open_events == 2

    async def test_only_one_trial_in_flight(self, breaker, clock):
        await _trip(breaker)
        clock.advance(30.0)

        started = asyncio.Event()
        release = asyncio.Event()

        async def slow_trial():
            started.set()
            await release.wait()
            return "trial"

        trial = asyncio.create_task(breaker.call(slow_trial))
        await started.wait()
        assert breaker.state is CircuitState.HALF_OPEN

        with pytest.raises(CircuitOpenError) as exc:
            await breaker.call(_ok)
        assert exc.value.state is CircuitState.HALF_OPEN

        release.set()
        assert await trial == "trial"
        assert breaker.state is CircuitState.CLOSED

    async def test_cancelled_trial_frees_the_slot(self, breaker, clock):
        await _trip(breaker)
        clock.advance(30.0)

        started = asyncio.Event()

        async def hanging_trial():
            started.set()
            await asyncio.Event().wait()

        trial = asyncio.create_task(breaker.call(hanging_trial))
        await started.wait()
        trial.cancel()
        with pytest.raises(asyncio.CancelledError):
            await trial

        assert await breaker.call(_ok) == "ok"
        assert breaker.state is CircuitState.CLOSED


class TestLateOutcomes:
    async def _pending_call(self, breaker, outcome):
        """Start a call that finishes with ``outcome`` once released."""
        started = asyncio.Event()
        release = asyncio.Event()

        async def slow_operation():
            started.set()
            await release.wait()
            return await outcome()

        task = asyncio.create_task(breaker.call(slow_operation))
        await started.wait()
        return task, release

    async def test_late_failure_does_not_reopen_during_trial(self, breaker, clock):
        late, release_late = await self._pending_call(breaker, _fail)
        await _trip(breaker)
        clock.advance(30.0)
        trial, release_trial = await self._pending_call(breaker, _ok)
        assert breaker.state is CircuitState.HALF_OPEN

        release_late.set()
        with pytest.raises(Boom):
            await late
        assert breaker.state is CircuitState.HALF_OPEN
        assert breaker.open_events == 1

        release_trial.set()
        assert await trial == "ok"
        assert breaker.state is CircuitState.CLOSED

    async def test_late_success_does_not_close_during_trial(self, breaker, clock):
        late, release_late = await self._pending_call(breaker, _ok)
        await _trip(breaker)
        clock.advance(30.0)
        trial, release_trial = await self._pending_call(breaker, _fail)

        release_late.set()
        assert await late == "ok"
        assert breaker.state is CircuitState.HALF_OPEN
        with pytest.raises(CircuitOpenError):
            await breaker.call(_ok)

        release_trial.set()
        with pytest.raises(Boom):
            await trial
        assert breaker.state is CircuitState.OPEN
        assert breaker.open_events == 2

    async def test_late_success_after_reopen_is_ignored(self, breaker, clock):
        late, release_late = await self._pending_call(breaker, _ok)
        await _trip(breaker)
        clock.advance(30.0)
        with pytest.raises(Boom):
            await breaker.call(_fail)

        release_late.set()
        assert await late == "ok"
        assert breaker.state is CircuitState.OPEN
        assert breaker.snapshot()["window_calls"] == 3


class TestListenersAndSnapshot:
    async def test_listener_sees_every_transition(self, breaker, clock):
        transitions = []
        breaker.add_listener(lambda old, new: transitions.append((old, new)))

        await _trip(breaker)
        clock.advance(30.0)
        await breaker.call(_ok)

        assert transitions == [
            (CircuitState.CLOSED, CircuitState.OPEN),
            (CircuitState.OPEN, CircuitState.HALF_OPEN),
            (CircuitState.HALF_OPEN, CircuitState.CLOSED),
        ]

    async def test_snapshot(self, breaker):
        await breaker.call(_ok)
        with pytest.raises(Boom):
            await breaker.call(_fail)

        assert breaker.snapshot() == {
            "name": "test",
            "state": "closed",
            "window_calls": 2,
            "window_failures": 1,
            "open_events": 0,
            "rejected_calls": 0,
        }


@pytest.mark.parametrize(
    "kwargs",
    [
        {"volume_threshold": 0},
        {"error_threshold_percentage": 0},
        {"error_threshold_percentage": 101},
        {"reset_timeout": -1},
        {"volume_threshold": 5, "window_size": 4},
    ],
)
def test_invalid_configuration(kwargs):
    with pytest.raises(ValueError):
        CircuitBreaker("bad", **kwargs)
