"""Process Runner.

This module is the only place in sdlpack that talks to the operating system
process API. Every external command (package managers, CMake, ...) goes
through :class:`ProcessRunner`.

Design:
    - Commands are strings executed through the platform shell
      (``/bin/sh -c`` or ``cmd.exe /c``)
    - The command line is always echoed before execution, even in dry-run
    - With a line observer, stdout and stderr are piped and relayed by two
      independent tasks on a small thread pool. Each line is echoed to the
      console, then handed to the observer. Lines keep their order within a
      stream; there is no ordering between the two streams.
    - Without an observer the child inherits the console
    - The exit code is returned untouched; interpreting it is the caller's job
    - Timeouts are opt-in; on expiry or Ctrl-C the whole process tree is killed
"""

import logging
import os
import subprocess
import sys
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import IO, Callable, Optional, Sequence, Union

import psutil

from sdlpack.interrupt_utils import handle_keyboard_interrupt_properly
from sdlpack.packages.platform_utils import HostPlatform

logger = logging.getLogger(__name__)

LineObserver = Callable[[str], None]


class CommandTimeoutError(Exception):
    """Raised when a command exceeds its timeout and has been killed."""

    def __init__(self, command: str, timeout: float):
        super().__init__(f"Command timed out after {timeout:g}s: {command}")
        self.command = command
        self.timeout = timeout


def kill_process_tree(pid: int) -> int:
    """Kill a process and all of its descendants, children first.

    Args:
        pid: PID of the root process

    Returns:
        Number of processes signalled
    """
    try:
        root = psutil.Process(pid)
        processes = root.children(recursive=True)
        processes.reverse()
        processes.append(root)
    except psutil.NoSuchProcess:
        return 0

    killed = 0
    for proc in processes:
        try:
            proc.terminate()
            killed += 1
        except psutil.NoSuchProcess:
            pass  # Already dead
        except psutil.AccessDenied as e:
            logger.warning(f"Failed to terminate process {proc.pid}: {e}")

    _gone, alive = psutil.wait_procs(processes, timeout=3)
    for proc in alive:
        try:
            proc.kill()
            logger.warning(f"Force killed stubborn process {proc.pid}")
        except psutil.NoSuchProcess:
            pass
        except psutil.AccessDenied as e:
            logger.warning(f"Failed to force kill process {proc.pid}: {e}")

    return killed


class ProcessRunner:
    """Runs shell commands and relays their output.

    Example usage:
        runner = ProcessRunner(PlatformDetector.detect())
        exit_code = runner.run("cmake --version", on_line=print)
    """

    def __init__(self, host: HostPlatform):
        """Initialize process runner.

        Args:
            host: Platform used to pick the shell
        """
        self.host = host
        self._console_lock = threading.Lock()

    def run(
        self,
        command: str,
        cwd: Optional[Union[str, Path]] = None,
        on_line: Optional[LineObserver] = None,
        dry_run: bool = False,
        timeout: Optional[float] = None,
        redact: Sequence[str] = (),
    ) -> int:
        """Run a command through the platform shell.

        Args:
            command: Full command line
            cwd: Working directory (defaults to the current directory)
            on_line: Observer invoked with every stdout/stderr line. It may be
                called from either relay task and is not synchronized.
            dry_run: Only echo the command and report success
            timeout: Seconds before the process tree is killed (None waits forever)
            redact: Secrets masked as *** wherever the command line is echoed or logged

        Returns:
            Process exit code (0 on success)

        Raises:
            CommandTimeoutError: If the timeout expires
            Exception: Whatever the observer raised, after the process exits
        """
        shown = command
        for secret in redact:
            if secret:
                shown = shown.replace(secret, "***")
        self._echo(f"> {shown}", sys.stdout)

        if dry_run:
            logger.debug(f"Dry run, not executing: {shown}")
            return 0

        argv = self.host.shell_command(command)
        workdir = str(cwd) if cwd is not None else os.getcwd()
        logger.debug(f"Spawning {shown!r} in {workdir}")

        if on_line is None:
            process = subprocess.Popen(argv, cwd=workdir)
            return self._wait(process, shown, timeout)

        process = subprocess.Popen(
            argv,
            cwd=workdir,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            bufsize=1,
        )

        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="sdlpack-relay") as pool:
            relays = [
                pool.submit(self._relay, process.stdout, sys.stdout, on_line),
                pool.submit(self._relay, process.stderr, sys.stderr, on_line),
            ]
            returncode = self._wait(process, shown, timeout)
            for relay in relays:
                relay.result()

        logger.debug(f"Command exited with {returncode}: {shown}")
        return returncode

    def _wait(self, process: subprocess.Popen, command: str, timeout: Optional[float]) -> int:
        try:
            return process.wait(timeout=timeout)
        except subprocess.TimeoutExpired as e:
            kill_process_tree(process.pid)
            process.wait()
            assert timeout is not None
            raise CommandTimeoutError(command, timeout) from e
        except KeyboardInterrupt as ke:
            kill_process_tree(process.pid)
            process.wait()
            handle_keyboard_interrupt_properly(ke)
            raise  # Never reached, but satisfies type checker

    def _relay(self, stream: Optional[IO[str]], console: IO[str], on_line: LineObserver) -> None:
        """Drain one stream line-by-line, echoing and observing each line.

        The stream is always drained to EOF so the child never blocks on a
        full pipe; an observer failure stops observation, not draining.
        """
        if stream is None:
            return

        error: Optional[Exception] = None
        with stream:
            for raw_line in stream:
                line = raw_line.rstrip("\r\n")
                self._echo(line, console)
                if error is not None:
                    continue
                try:
                    on_line(line)
                except Exception as e:
                    logger.debug(f"Line observer failed: {e}")
                    error = e

        if error is not None:
            raise error

    def _echo(self, line: str, console: IO[str]) -> None:
        with self._console_lock:
            print(line, file=console, flush=True)

