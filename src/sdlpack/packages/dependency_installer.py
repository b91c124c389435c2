"""Dependency Installer.

Installs SDL's build prerequisites with the host's package manager before a
build. The commands come from a :mod:`sdlpack.packages.dependency_spec`
mapping; this module only selects the right entry and drives the process
runner.
"""

import logging
from typing import TYPE_CHECKING, Mapping, Optional

from sdlpack.packages.dependency_spec import DependencySpecError, PlatformPackageSpec
from sdlpack.packages.platform_utils import HostPlatform

if TYPE_CHECKING:
    from sdlpack.process import ProcessRunner

logger = logging.getLogger(__name__)


class DependencyInstaller:
    """Selects and installs the host platform's package list."""

    def __init__(
        self,
        runner: "ProcessRunner",
        host: HostPlatform,
        dry_run: bool = False,
        timeout: Optional[float] = None,
    ):
        """Initialize dependency installer.

        Args:
            runner: Process runner used for the package manager commands
            host: Platform to install for
            dry_run: Echo the package manager commands without running them
            timeout: Optional per-command timeout in seconds
        """
        self.runner = runner
        self.host = host
        self.dry_run = dry_run
        self.timeout = timeout

    def select_platform(self, specs: Mapping[str, PlatformPackageSpec]) -> Optional[str]:
        """Return the first key in ``specs`` naming the host platform, if any."""
        for platform_id in specs:
            if self.host.matches(platform_id):
                return platform_id
        return None

    def install_platform_dependencies(self, specs: Mapping[str, PlatformPackageSpec]) -> bool:
        """Install the packages listed for the host platform.

        Args:
            specs: Ordered mapping of platform identifier to package spec

        Returns:
            True if nothing needed installing or every command succeeded

        Raises:
            DependencySpecError: If the selected spec has no packages or no
                install command
        """
        rid = self.host.runtime_identifier
        platform_id = self.select_platform(specs)
        if platform_id is None:
            print(f"No packages to install for platform {rid}")
            return True

        spec = specs[platform_id]
        logger.debug(f"Selected dependency spec '{platform_id}' for {rid}")

        if not spec.packages:
            raise DependencySpecError("No packages to install!")
        if not spec.install_command:
            raise DependencySpecError("No install command was provided!")

        print(f'Installing dependencies for platform "{rid}"')

        if spec.update_command:
            if self._run(spec.update_command) != 0:
                logger.warning(f"Package index update failed: {spec.update_command}")
                return False

        install_command = " ".join([spec.install_command, *spec.packages])
        return self._run(install_command) == 0

    def _run(self, command: str) -> int:
        return self.runner.run(command, dry_run=self.dry_run, timeout=self.timeout)
