from cloudnet_repository.integrations.time.abc import Time
from cloudnet_repository.integrations.time.fake import FakeTime
from cloudnet_repository.integrations.time.real import RealTime

__all__ = ["FakeTime", "RealTime", "Time"]
