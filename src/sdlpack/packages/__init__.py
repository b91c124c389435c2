"""Host platform resolution and build prerequisite installation."""

from .dependency_installer import DependencyInstaller
from .dependency_spec import (
    DependencySpecError,
    PlatformPackageSpec,
    load_dependency_specs,
    parse_dependency_specs,
)
from .platform_utils import HostPlatform, OSFamily, PlatformDetector, PlatformError

__all__ = [
    "DependencyInstaller",
    "DependencySpecError",
    "PlatformPackageSpec",
    "load_dependency_specs",
    "parse_dependency_specs",
    "HostPlatform",
    "OSFamily",
    "PlatformDetector",
    "PlatformError",
]
