"""Fake clock for testing.

FakeTime returns a fixed start time and advances by a constant step on every
call, so consecutive records get distinct, predictable timestamps.
"""

from datetime import UTC, datetime, timedelta

from cloudnet_repository.integrations.time.abc import Time


class FakeTime(Time):
    """Deterministic clock.

    This class has NO public setup methods. All state is provided via constructor.
    """

    def __init__(
        self,
        *,
        start: datetime | None = None,
        step: timedelta = timedelta(seconds=1),
    ) -> None:
        self._current = start or datetime(2024, 1, 15, 10, 30, 0, tzinfo=UTC)
        self._step = step
        self._now_calls = 0

    @property
    def now_calls(self) -> int:
        """Number of now() calls, for test assertions."""
        return self._now_calls

    def now(self) -> datetime:
        value = self._current
        self._current = value + self._step
        self._now_calls += 1
        return value
