"""Real clock using datetime.now()."""

from datetime import UTC, datetime

from cloudnet_repository.integrations.time.abc import Time


class RealTime(Time):
    """Production implementation returning the current UTC time."""

    def now(self) -> datetime:
        return datetime.now(UTC)
