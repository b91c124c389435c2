"""Package feed publishing.

Pushing is delegated to the .NET CLI:

    dotnet nuget push <package> -s <source> [-k <api key>]

so every source ``dotnet`` understands works unchanged: v3 service indexes,
plain push URLs, local directory feeds and sources named in NuGet.config.
Without an API key, ``dotnet`` falls back to the credentials configured for
the source.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from sdlpack.config import ConfigurationError

if TYPE_CHECKING:
    from sdlpack.process import ProcessRunner

logger = logging.getLogger(__name__)

API_KEY_ENV = "SDLPACK_NUGET_API_KEY"
PUSH_COMMAND = "dotnet nuget push"


class FeedConfigError(ConfigurationError):
    """Raised when the feed configuration is incomplete."""

    def __init__(self, missing: list[str]):
        super().__init__(f"Missing feed configuration: {', '.join(missing)}")
        self.missing = missing


@dataclass(frozen=True)
class FeedConfig:
    """Where and how to push packages.

    Attributes:
        source: Feed URL, local feed directory or NuGet.config source name
        api_key: Optional API key passed to the push
    """

    source: Optional[str] = None
    api_key: Optional[str] = None

    @classmethod
    def from_environment(cls, source: Optional[str], api_key: Optional[str] = None) -> "FeedConfig":
        """Combine CLI values with the SDLPACK_NUGET_API_KEY fallback."""
        return cls(source=source, api_key=api_key or os.environ.get(API_KEY_ENV))

    def missing_fields(self) -> list[str]:
        return [] if self.source else ["source"]

    def validate(self) -> None:
        """Raise FeedConfigError naming every missing field."""
        missing = self.missing_fields()
        if missing:
            raise FeedConfigError(missing)


@dataclass
class PublishResult:
    """Outcome of a push."""

    success: bool
    exit_code: int
    message: str


class FeedPublisher:
    """Pushes packages to a NuGet feed with ``dotnet nuget push``."""

    def __init__(self, runner: "ProcessRunner", timeout: Optional[float] = None):
        """Initialize feed publisher.

        Args:
            runner: Process runner used to invoke the .NET CLI
            timeout: Optional timeout in seconds for the push
        """
        self.runner = runner
        self.timeout = timeout

    def push_command(self, package_path: Path, feed: FeedConfig) -> str:
        """Build the push command line."""
        assert feed.source is not None
        quote = self.runner.host.quote_argument
        command = f"{PUSH_COMMAND} {quote(str(package_path))} -s {quote(feed.source)}"
        if feed.api_key:
            command += f" -k {quote(feed.api_key)}"
        return command

    def publish(self, package_path: Path, feed: FeedConfig) -> PublishResult:
        """Push a package to the feed.

        Args:
            package_path: ``.nupkg`` file to upload
            feed: Feed location and optional credentials

        Returns:
            PublishResult; a failed push is reported, not raised

        Raises:
            FeedConfigError: If no source is configured
        """
        feed.validate()
        package_path = Path(package_path)

        redact = (feed.api_key,) if feed.api_key else ()
        exit_code = self.runner.run(
            self.push_command(package_path, feed),
            timeout=self.timeout,
            redact=redact,
        )

        if exit_code != 0:
            return PublishResult(
                success=False,
                exit_code=exit_code,
                message=f"Failed to push {package_path.name}: {PUSH_COMMAND} exited with code {exit_code}",
            )

        logger.info(f"Pushed {package_path.name} to {feed.source}")
        return PublishResult(success=True, exit_code=0, message=f"Pushed {package_path.name}")
