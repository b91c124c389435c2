"""Shared fixtures for the sdlpack unit tests."""

from unittest.mock import MagicMock

import pytest

from sdlpack.packages import PlatformDetector
from sdlpack.process import ProcessRunner


def _lookup(table, command, default):
    for prefix, value in table.items():
        if command.startswith(prefix):
            return value
    return default


@pytest.fixture
def scripted_runner():
    """Factory for a mocked ProcessRunner with scripted behaviour.

    ``exit_codes`` and ``output`` are keyed by command prefix; the first
    matching prefix wins. Scripted output lines are fed to the observer, and
    dry runs always succeed without output.
    """

    def make(exit_codes=None, output=None, default_exit_code=0, host=None):
        exit_codes = exit_codes or {}
        output = output or {}
        runner = MagicMock(spec=ProcessRunner)
        runner.host = host or PlatformDetector.detect(system="Linux", machine="x86_64")

        def run(command, cwd=None, on_line=None, dry_run=False, timeout=None, redact=()):
            if dry_run:
                return 0
            if on_line is not None:
                for line in _lookup(output, command, ()):
                    on_line(line)
            return _lookup(exit_codes, command, default_exit_code)

        runner.run.side_effect = run
        return runner

    return make


@pytest.fixture
def issued_commands():
    """Return the command lines a mocked runner was asked to run, in order."""

    def commands(runner):
        return [call.args[0] for call in runner.run.call_args_list]

    return commands
