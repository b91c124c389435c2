"""NuGet package assembly and feed publishing."""

from .feed import FeedConfig, FeedConfigError, FeedPublisher, PublishResult
from .package_builder import PackageBuilder, PackageMetadata

__all__ = [
    "FeedConfig",
    "FeedConfigError",
    "FeedPublisher",
    "PublishResult",
    "PackageBuilder",
    "PackageMetadata",
]
