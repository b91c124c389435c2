"""External process execution for sdlpack."""

from .runner import (
    CommandTimeoutError,
    LineObserver,
    ProcessRunner,
    kill_process_tree,
)

__all__ = [
    "ProcessRunner",
    "CommandTimeoutError",
    "LineObserver",
    "kill_process_tree",
]
