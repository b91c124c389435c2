"""Unit tests for feed publishing."""

import pytest

from sdlpack.config import ConfigurationError
from sdlpack.packages import PlatformDetector
from sdlpack.publish import FeedConfig, FeedConfigError, FeedPublisher


@pytest.fixture
def package_file(tmp_path):
    path = tmp_path / "SDLPInvokeRedist.2.28.0.nupkg"
    path.write_bytes(b"PK\x05\x06" + b"\x00" * 18)
    return path


class TestFeedConfig:
    """Tests for FeedConfig."""

    def test_missing_source(self):
        with pytest.raises(FeedConfigError) as exc_info:
            FeedConfig(api_key="k").validate()
        assert exc_info.value.missing == ["source"]
        assert str(exc_info.value) == "Missing feed configuration: source"

    def test_api_key_is_optional(self, monkeypatch):
        monkeypatch.delenv("SDLPACK_NUGET_API_KEY", raising=False)
        feed = FeedConfig.from_environment("https://feed.example.com/v3/index.json")

        assert feed.api_key is None
        assert feed.missing_fields() == []
        feed.validate()

    def test_api_key_from_environment(self, monkeypatch):
        monkeypatch.setenv("SDLPACK_NUGET_API_KEY", "env-key")
        feed = FeedConfig.from_environment("https://feed.example.com")
        assert feed.api_key == "env-key"

    def test_explicit_api_key_wins(self, monkeypatch):
        monkeypatch.setenv("SDLPACK_NUGET_API_KEY", "env-key")
        feed = FeedConfig.from_environment("https://feed.example.com", "cli-key")
        assert feed.api_key == "cli-key"

    def test_error_is_configuration_error(self):
        assert issubclass(FeedConfigError, ConfigurationError)


class TestPushCommand:
    """Tests for the dotnet nuget push command line."""

    def test_url_source_with_key(self, scripted_runner, package_file):
        publisher = FeedPublisher(scripted_runner())
        feed = FeedConfig(source="https://api.nuget.org/v3/index.json", api_key="secret")

        assert publisher.push_command(package_file, feed) == (
            f"dotnet nuget push {package_file} -s https://api.nuget.org/v3/index.json -k secret"
        )

    def test_without_key_uses_configured_credentials(self, scripted_runner, package_file):
        publisher = FeedPublisher(scripted_runner())
        command = publisher.push_command(package_file, FeedConfig(source="nuget.org"))

        assert command == f"dotnet nuget push {package_file} -s nuget.org"
        assert "-k" not in command

    def test_paths_with_spaces_are_quoted(self, scripted_runner, tmp_path):
        publisher = FeedPublisher(scripted_runner())
        command = publisher.push_command(tmp_path / "my pkg.nupkg", FeedConfig(source="/srv/local feed"))
        assert command == f"dotnet nuget push '{tmp_path / 'my pkg.nupkg'}' -s '/srv/local feed'"

    def test_windows_quoting(self, scripted_runner):
        host = PlatformDetector.detect(system="Windows", machine="AMD64")
        publisher = FeedPublisher(scripted_runner(host=host))
        command = publisher.push_command("C:\\out\\pkg.nupkg", FeedConfig(source="C:\\local feed"))
        assert command == 'dotnet nuget push C:\\out\\pkg.nupkg -s "C:\\local feed"'


class TestPublish:
    """Tests for FeedPublisher.publish."""

    def test_successful_push(self, scripted_runner, issued_commands, package_file):
        runner = scripted_runner()
        publisher = FeedPublisher(runner, timeout=30)
        feed = FeedConfig(source="https://feed.example.com/v3/index.json", api_key="secret")

        result = publisher.publish(package_file, feed)

        assert result.success
        assert result.exit_code == 0
        assert issued_commands(runner)[0].startswith("dotnet nuget push")
        call = runner.run.call_args
        assert call.kwargs["timeout"] == 30
        assert call.kwargs["redact"] == ("secret",)

    def test_local_directory_feed(self, scripted_runner, issued_commands, package_file, tmp_path):
        runner = scripted_runner()
        feed_dir = tmp_path / "feed"
        feed_dir.mkdir()

        result = FeedPublisher(runner).publish(package_file, FeedConfig(source=str(feed_dir), api_key="k"))

        assert result.success
        assert issued_commands(runner) == [f"dotnet nuget push {package_file} -s {feed_dir} -k k"]

    def test_push_without_api_key(self, scripted_runner, issued_commands, package_file):
        runner = scripted_runner()

        result = FeedPublisher(runner).publish(package_file, FeedConfig(source="internal"))

        assert result.success
        assert issued_commands(runner) == [f"dotnet nuget push {package_file} -s internal"]
        assert runner.run.call_args.kwargs["redact"] == ()

    def test_failed_push_is_reported(self, scripted_runner, package_file):
        runner = scripted_runner(exit_codes={"dotnet nuget push": 1})

        result = FeedPublisher(runner).publish(package_file, FeedConfig(source="https://feed.example.com"))

        assert not result.success
        assert result.exit_code == 1
        assert "exited with code 1" in result.message

    def test_missing_source_raises_before_running(self, scripted_runner, package_file):
        runner = scripted_runner()
        with pytest.raises(FeedConfigError):
            FeedPublisher(runner).publish(package_file, FeedConfig(api_key="k"))
        runner.run.assert_not_called()
