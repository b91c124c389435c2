"""Unit tests for BuildOrchestrator."""

from pathlib import Path

import pytest

from sdlpack.build import (
    BuildOrchestrator,
    BuildVersion,
    SourceDirectoryNotFoundError,
    VersionNotFoundError,
)
from sdlpack.packages import PlatformDetector

REVISION_LINE = "-- Revision: SDL-release-2.28.0-0-g1234"


@pytest.fixture
def linux_host():
    return PlatformDetector.detect(system="Linux", machine="x86_64")


@pytest.fixture
def windows_host():
    return PlatformDetector.detect(system="Windows", machine="AMD64")


@pytest.fixture
def source_dir(tmp_path):
    path = tmp_path / "SDL"
    path.mkdir()
    return path


class TestCommandLines:
    """Tests for the generated CMake command lines."""

    def test_configure_on_linux(self, linux_host, scripted_runner):
        orchestrator = BuildOrchestrator(scripted_runner(), linux_host)
        command = orchestrator.configure_command(Path("SDL"), Path("artifacts/build"))
        assert command == (
            'cmake SDL -B artifacts/build -G "Ninja Multi-Config" '
            "-DSDL_STATIC=OFF -DSDL_SHARED=ON -DSDL_TEST=OFF"
        )

    def test_configure_on_windows_uses_default_generator(self, windows_host, scripted_runner):
        orchestrator = BuildOrchestrator(scripted_runner(host=windows_host), windows_host)
        command = orchestrator.configure_command(Path("SDL"), Path("build"))
        assert "-G" not in command
        assert command.startswith("cmake SDL -B build")

    def test_configure_quotes_paths_with_spaces(self, linux_host, scripted_runner):
        orchestrator = BuildOrchestrator(scripted_runner(), linux_host, cmake_options={})
        command = orchestrator.configure_command(Path("my src"), Path("out dir"))
        assert command == "cmake 'my src' -B 'out dir' -G \"Ninja Multi-Config\""

    def test_custom_options_keep_order(self, linux_host, scripted_runner):
        options = {"B_OPT": "1", "A_OPT": "0"}
        orchestrator = BuildOrchestrator(scripted_runner(), linux_host, cmake_options=options)
        command = orchestrator.configure_command(Path("src"), Path("build"))
        assert command.endswith("-DB_OPT=1 -DA_OPT=0")

    def test_compile_command(self, linux_host, scripted_runner):
        orchestrator = BuildOrchestrator(scripted_runner(), linux_host)
        assert orchestrator.compile_command(Path("build"), "Release") == (
            "cmake --build build --config Release"
        )


class TestLibraryNaming:
    """Tests for the build output library name."""

    def test_linux_has_version_suffix(self, linux_host, scripted_runner):
        orchestrator = BuildOrchestrator(scripted_runner(), linux_host)
        assert orchestrator.library_output_name() == "libSDL2-2.0.so"
        assert orchestrator.library_path(Path("build"), "Release") == Path(
            "build/Release/libSDL2-2.0.so"
        )

    def test_macos(self, scripted_runner):
        host = PlatformDetector.detect(system="Darwin", machine="arm64")
        orchestrator = BuildOrchestrator(scripted_runner(host=host), host)
        assert orchestrator.library_output_name() == "libSDL2-2.0.dylib"

    def test_windows_has_no_suffix(self, windows_host, scripted_runner):
        orchestrator = BuildOrchestrator(scripted_runner(host=windows_host), windows_host)
        assert orchestrator.library_output_name() == "SDL2.dll"


class TestBuildArtifact:
    """Tests for the configure/compile sequence."""

    def test_successful_build(self, linux_host, source_dir, tmp_path, scripted_runner, issued_commands):
        runner = scripted_runner(
            output={"cmake " + str(source_dir): ["-- Building SDL", REVISION_LINE, "-- Done"]}
        )
        orchestrator = BuildOrchestrator(runner, linux_host)
        build_dir = tmp_path / "build"

        result = orchestrator.build_artifact(source_dir, build_dir, "Release")

        assert result.success
        assert result.version == BuildVersion(2, 28, 0)
        assert str(result.version) == "2.28.0"
        assert result.library_path == build_dir / "Release" / "libSDL2-2.0.so"

        commands = issued_commands(runner)
        assert len(commands) == 2
        assert commands[0].startswith(f"cmake {source_dir} -B {build_dir}")
        assert commands[1] == f"cmake --build {build_dir} --config Release"
        assert runner.run.call_args_list[0].kwargs["on_line"] is not None

    def test_missing_source_directory(self, linux_host, tmp_path, scripted_runner):
        runner = scripted_runner()
        orchestrator = BuildOrchestrator(runner, linux_host)
        missing = tmp_path / "nope"

        with pytest.raises(SourceDirectoryNotFoundError, match="does not exist!"):
            orchestrator.build_artifact(missing, tmp_path / "build", "Release")
        runner.run.assert_not_called()

    def test_configure_failure_is_unsuccessful_result(self, linux_host, source_dir, tmp_path, scripted_runner):
        runner = scripted_runner(
            exit_codes={"cmake " + str(source_dir): 1},
            output={"cmake " + str(source_dir): [REVISION_LINE]},
        )
        orchestrator = BuildOrchestrator(runner, linux_host)

        result = orchestrator.build_artifact(source_dir, tmp_path / "build", "Release")

        assert not result.success
        assert result.version is None
        assert "configure failed" in result.message
        assert runner.run.call_count == 1

    def test_no_version_is_fatal(self, linux_host, source_dir, tmp_path, scripted_runner):
        runner = scripted_runner(output={"cmake " + str(source_dir): ["-- Configuring done"]})
        orchestrator = BuildOrchestrator(runner, linux_host)

        with pytest.raises(VersionNotFoundError, match="Failed to find a version from CMake output!"):
            orchestrator.build_artifact(source_dir, tmp_path / "build", "Release")
        assert runner.run.call_count == 1

    def test_compile_failure_is_unsuccessful_result(self, linux_host, source_dir, tmp_path, scripted_runner):
        runner = scripted_runner(
            exit_codes={"cmake --build": 2},
            output={"cmake " + str(source_dir): [REVISION_LINE]},
        )
        orchestrator = BuildOrchestrator(runner, linux_host)

        result = orchestrator.build_artifact(source_dir, tmp_path / "build", "Debug")

        assert not result.success
        assert result.version == BuildVersion(2, 28, 0)
        assert result.library_path is None
        assert "exit code 2" in result.message

    def test_first_revision_line_wins(self, linux_host, source_dir, tmp_path, scripted_runner):
        runner = scripted_runner(
            output={
                "cmake " + str(source_dir): [
                    "-- Revision: SDL-release-2.26.1-0-gabcdef",
                    REVISION_LINE,
                ]
            }
        )
        orchestrator = BuildOrchestrator(runner, linux_host)

        result = orchestrator.build_artifact(source_dir, tmp_path / "build", "Release")
        assert str(result.version) == "2.26.1"

    def test_timeout_is_forwarded(self, linux_host, source_dir, tmp_path, scripted_runner):
        runner = scripted_runner(output={"cmake " + str(source_dir): [REVISION_LINE]})
        orchestrator = BuildOrchestrator(runner, linux_host, timeout=60)
        orchestrator.build_artifact(source_dir, tmp_path / "build", "Release")

        assert [call.kwargs["timeout"] for call in runner.run.call_args_list] == [60, 60]
