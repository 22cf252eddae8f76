"""Publish endpoints notified after a version is installed."""

from cloudnet_repository.integrations.publishers.abc import UpdatePublisher
from cloudnet_repository.integrations.publishers.fake import FakeUpdatePublisher

__all__ = ["FakeUpdatePublisher", "UpdatePublisher"]
