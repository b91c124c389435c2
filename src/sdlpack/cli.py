"""
Command-line interface for sdlpack.

This module provides the `sdlpack` CLI tool with two commands:
- compile: install build prerequisites, build SDL and package the artifact
- publish: consolidate all artifacts into a NuGet package and push it
"""

import argparse
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from sdlpack import __version__
from sdlpack.cli_utils import ErrorFormatter, PathValidator
from sdlpack.config import ConfigurationError, PipelineConfig
from sdlpack.log_utils import setup_logging
from sdlpack.packages import PlatformDetector
from sdlpack.pipeline import CompilePipeline, PublishPipeline
from sdlpack.process import ProcessRunner
from sdlpack.publish import FeedConfig


@dataclass
class CompileArgs:
    """Arguments for the compile command."""

    source_dir: Optional[Path] = None
    artifacts_dir: Optional[Path] = None
    config: str = "Release"
    dependencies: Optional[Path] = None
    timeout: Optional[float] = None
    verbose: bool = False


@dataclass
class PublishArgs:
    """Arguments for the publish command."""

    source: str
    api_key: Optional[str] = None
    artifacts_dir: Optional[Path] = None
    verbose: bool = False


def compile_command(args: CompileArgs) -> None:
    """Build SDL for this platform and package it as an artifact.

    Examples:
        sdlpack compile                       # Build ./SDL into ./artifacts
        sdlpack compile --config Debug        # Build the Debug configuration
        sdlpack compile --source-dir ../SDL   # Build another checkout
    """
    try:
        config = PipelineConfig.from_environment(
            source_dir=args.source_dir,
            artifacts_dir=args.artifacts_dir,
            build_config=args.config,
            command_timeout=args.timeout,
        )
        host = PlatformDetector.detect()

        if args.verbose:
            print(f"Runtime: {host.runtime_identifier}")
            print(f"Source: {config.source_dir}")
            print(f"Artifacts: {config.artifacts_dir}")
            print()

        pipeline = CompilePipeline(
            config=config,
            host=host,
            runner=ProcessRunner(host),
            dependencies_path=args.dependencies,
        )
        exit_code = pipeline.run()

        if exit_code == 0:
            ErrorFormatter.print_success("Compile successful!")
        else:
            ErrorFormatter.print_error("Compile failed!", "See the command output above for details.")
        sys.exit(exit_code)

    except ConfigurationError as e:
        ErrorFormatter.handle_configuration_error(e)
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def publish_command(args: PublishArgs) -> None:
    """Consolidate artifacts into a NuGet package and push it to a feed.

    Examples:
        sdlpack publish https://api.nuget.org/v3/index.json
        sdlpack publish https://nuget.example.com/api/v2/package --api-key KEY
        sdlpack publish ./local-feed                # Push to a directory feed
    """
    try:
        config = PipelineConfig.from_environment(artifacts_dir=args.artifacts_dir)
        feed = FeedConfig.from_environment(args.source, args.api_key)
        host = PlatformDetector.detect()

        pipeline = PublishPipeline(config=config, runner=ProcessRunner(host))
        exit_code = pipeline.run(feed)

        if exit_code == 0:
            ErrorFormatter.print_success("Publish successful!")
        else:
            ErrorFormatter.print_error("Publish failed!", "See the dotnet nuget push output above for details.")
        sys.exit(exit_code)

    except ConfigurationError as e:
        ErrorFormatter.handle_configuration_error(e)
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def _run_compile(parsed_args: argparse.Namespace) -> None:
    if parsed_args.dependencies is not None:
        PathValidator.validate_file(parsed_args.dependencies)
    compile_command(
        CompileArgs(
            source_dir=parsed_args.source_dir,
            artifacts_dir=parsed_args.artifacts_dir,
            config=parsed_args.config,
            dependencies=parsed_args.dependencies,
            timeout=parsed_args.timeout,
            verbose=parsed_args.verbose,
        )
    )


def _run_publish(parsed_args: argparse.Namespace) -> None:
    publish_command(
        PublishArgs(
            source=parsed_args.source,
            api_key=parsed_args.api_key,
            artifacts_dir=parsed_args.artifacts_dir,
            verbose=parsed_args.verbose,
        )
    )


COMMANDS: dict[str, Callable[[argparse.Namespace], None]] = {
    "compile": _run_compile,
    "publish": _run_publish,
}


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for all commands."""
    parser = argparse.ArgumentParser(
        prog="sdlpack",
        description="sdlpack - SDL2 native library builder and NuGet packager",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"sdlpack {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Compile command
    compile_parser = subparsers.add_parser(
        "compile",
        help="Build SDL for this platform and package the artifact",
    )
    compile_parser.add_argument(
        "--source-dir",
        type=Path,
        default=None,
        help="SDL source directory (default: ./SDL)",
    )
    compile_parser.add_argument(
        "--artifacts-dir",
        type=Path,
        default=None,
        help="Artifacts directory (default: ./artifacts)",
    )
    compile_parser.add_argument(
        "--config",
        default="Release",
        help="CMake build configuration (default: Release)",
    )
    compile_parser.add_argument(
        "--dependencies",
        type=Path,
        default=None,
        help="Dependency specification JSON (default: bundled)",
    )
    compile_parser.add_argument(
        "-t",
        "--timeout",
        type=float,
        default=None,
        help="Timeout in seconds for each external command (default: no timeout)",
    )
    compile_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose output",
    )

    # Publish command
    publish_parser = subparsers.add_parser(
        "publish",
        help="Consolidate artifacts into a NuGet package and push it",
    )
    publish_parser.add_argument(
        "source",
        help="Package source to push to (URL, directory or NuGet.config source name)",
    )
    publish_parser.add_argument(
        "--api-key",
        default=None,
        help="Feed API key (default: $SDLPACK_NUGET_API_KEY, else NuGet.config credentials)",
    )
    publish_parser.add_argument(
        "--artifacts-dir",
        type=Path,
        default=None,
        help="Artifacts directory (default: ./artifacts)",
    )
    publish_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose output",
    )

    return parser


def main() -> None:
    """sdlpack - build SDL2 and publish it as a NuGet redistributable."""
    parser = build_parser()
    parsed_args = parser.parse_args()

    # If no command specified, show help
    if not parsed_args.command:
        parser.print_help()
        sys.exit(0)

    setup_logging(verbose=parsed_args.verbose)
    COMMANDS[parsed_args.command](parsed_args)


if __name__ == "__main__":
    main()
