"""Platform Detection Utilities.

This module resolves the host platform once per process into a
:class:`HostPlatform` value that is then passed to every component needing
platform-specific behaviour (shell selection, CMake generator, library
naming, dependency selection).

Runtime identifiers follow the .NET RID convention:
    - Windows: win-x64, win-x86, win-arm64
    - Linux: linux-x64, linux-arm64, linux-arm
    - macOS: osx-x64, osx-arm64
"""

import platform
import shlex
import subprocess
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from sdlpack.config import ConfigurationError


class PlatformError(ConfigurationError):
    """Raised when platform detection fails or platform is unsupported."""

    pass


class OSFamily(Enum):
    """Operating systems a build can run on."""

    WINDOWS = "win"
    OSX = "osx"
    LINUX = "linux"


# Dependency-spec keys that name each OS family, compared case-insensitively.
_OS_ALIASES = {
    OSFamily.WINDOWS: ("windows", "win"),
    OSFamily.OSX: ("osx", "macos", "darwin"),
    OSFamily.LINUX: ("linux",),
}


@dataclass(frozen=True)
class HostPlatform:
    """The platform this process is running on.

    Attributes:
        os: Operating system family
        arch: Lower-cased architecture in RID form (x64, x86, arm64, arm)
        system: Raw lower-cased ``platform.system()`` value
    """

    os: OSFamily
    arch: str
    system: str = ""

    @property
    def runtime_identifier(self) -> str:
        """RID used to namespace packaged libraries, e.g. ``linux-x64``."""
        return f"{self.os.value}-{self.arch}"

    @property
    def is_windows(self) -> bool:
        return self.os is OSFamily.WINDOWS

    def matches(self, platform_id: str) -> bool:
        """Check whether a dependency-spec platform key names this host.

        Args:
            platform_id: Key from the dependency mapping (e.g. "linux")

        Returns:
            True if the key identifies the running platform
        """
        key = platform_id.strip().lower()
        if key in _OS_ALIASES[self.os]:
            return True
        return bool(self.system) and key == self.system

    def shell_command(self, command: str) -> list[str]:
        """Wrap a command line for execution through the platform shell."""
        if self.is_windows:
            return ["cmd.exe", "/c", command]
        return ["/bin/sh", "-c", command]

    def quote_argument(self, value: str) -> str:
        """Quote one argument for the platform shell."""
        if self.is_windows:
            return subprocess.list2cmdline([value])
        return shlex.quote(value)

    def shared_library_name(self, name: str) -> str:
        """Return the platform file name of a shared library.

        ``SDL2`` becomes ``SDL2.dll``, ``libSDL2.so`` or ``libSDL2.dylib``.
        """
        if self.os is OSFamily.WINDOWS:
            return f"{name}.dll"
        extension = "dylib" if self.os is OSFamily.OSX else "so"
        return f"lib{name}.{extension}"


class PlatformDetector:
    """Detects the current platform and architecture."""

    @staticmethod
    def normalize_arch(machine: str) -> str:
        """Normalize a ``platform.machine()`` value to its RID architecture name.

        Args:
            machine: Raw machine string (e.g. 'x86_64', 'AMD64', 'aarch64')

        Returns:
            Architecture name ('x64', 'x86', 'arm64', 'arm' or the lower-cased input)
        """
        machine = machine.lower()
        if machine in ("x86_64", "amd64", "x64"):
            return "x64"
        elif machine in ("i386", "i486", "i586", "i686", "x86"):
            return "x86"
        elif machine in ("aarch64", "arm64", "armv8l"):
            return "arm64"
        elif machine.startswith("arm"):
            return "arm"
        return machine

    @staticmethod
    def detect(system: Optional[str] = None, machine: Optional[str] = None) -> HostPlatform:
        """Resolve the host platform.

        Args:
            system: Override for ``platform.system()`` (testing)
            machine: Override for ``platform.machine()`` (testing)

        Returns:
            HostPlatform describing the running machine

        Raises:
            PlatformError: If the operating system is not supported
        """
        system = (system if system is not None else platform.system()).lower()
        machine = machine if machine is not None else platform.machine()

        if system == "windows":
            os_family = OSFamily.WINDOWS
        elif system == "darwin":
            os_family = OSFamily.OSX
        elif system == "linux":
            os_family = OSFamily.LINUX
        else:
            raise PlatformError(f"Unsupported platform: {system} {machine}")

        return HostPlatform(
            os=os_family,
            arch=PlatformDetector.normalize_arch(machine),
            system=system,
        )
