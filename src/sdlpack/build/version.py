"""SDL version extraction from CMake output.

SDL's configure step prints a revision line such as::

    -- Revision: SDL-release-2.28.0-0-g1234abcd

from which the dotted release version (``2.28.0``) is recovered.
"""

import logging
import re
import threading
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

VERSION_DECLARATION = "Revision: SDL-"
RELEASE_PREFIX = "release-"

_VERSION_PATTERN = re.compile(r"^\d+(\.\d+){1,3}$")


@dataclass(frozen=True)
class BuildVersion:
    """A dotted numeric version: major.minor[.build[.revision]].

    ``str()`` gives back exactly the components that were parsed, so
    ``2.26`` and ``2.26.0`` stay distinct.
    """

    major: int
    minor: int
    build: Optional[int] = None
    revision: Optional[int] = None

    @classmethod
    def parse(cls, text: str) -> "BuildVersion":
        """Parse a dotted version string.

        Args:
            text: Version such as "2.26.1"

        Returns:
            Parsed BuildVersion

        Raises:
            ValueError: If the text is not 2 to 4 dot-separated integers
        """
        text = text.strip()
        if not _VERSION_PATTERN.match(text):
            raise ValueError(f"Invalid version string: {text!r}")
        parts = [int(part) for part in text.split(".")]
        parts.extend([None] * (4 - len(parts)))  # type: ignore[list-item]
        return cls(*parts)

    def __str__(self) -> str:
        parts = [self.major, self.minor, self.build, self.revision]
        return ".".join(str(part) for part in parts if part is not None)


def extract_version_string(line: str) -> Optional[str]:
    """Pull the raw version out of a CMake revision line.

    Args:
        line: One line of configure output

    Returns:
        The version text (e.g. "2.26.1"), or None if the line carries no
        revision declaration
    """
    index = line.find(VERSION_DECLARATION)
    if index < 0:
        return None

    version_string = line[index + len(VERSION_DECLARATION):]
    if version_string.startswith(RELEASE_PREFIX):
        version_string = version_string[len(RELEASE_PREFIX):]

    dash = version_string.find("-")
    if dash >= 0:
        version_string = version_string[:dash]

    return version_string.strip()


class VersionLatch:
    """Write-once holder for the version found in configure output.

    Safe to feed from both output relay tasks at once.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._version: Optional[BuildVersion] = None

    @property
    def version(self) -> Optional[BuildVersion]:
        with self._lock:
            return self._version

    def offer(self, line: str) -> None:
        """Observe one output line; the first valid revision line sets the version."""
        with self._lock:
            if self._version is not None:
                return

            version_string = extract_version_string(line)
            if version_string is None:
                return

            try:
                self._version = BuildVersion.parse(version_string)
            except ValueError:
                logger.warning(f"Ignoring unparsable SDL revision line: {line!r}")
                return

            logger.debug(f"Detected SDL version {self._version}")
