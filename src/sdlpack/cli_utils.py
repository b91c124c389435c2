"""CLI utility functions for sdlpack.

This module provides common utilities used across CLI commands including:
- Error handling and formatting
- Path validation
"""

import sys
from pathlib import Path

from sdlpack.config import ConfigurationError


class ErrorFormatter:
    """Formats and displays error messages with ANSI color codes."""

    # ANSI color codes
    RED = "\033[1;31m"
    GREEN = "\033[1;32m"
    YELLOW = "\033[1;33m"
    RESET = "\033[0m"

    @staticmethod
    def print_error(title: str, message: str) -> None:
        """Print formatted error message.

        Args:
            title: Error title (e.g., "Configuration error", "Build failed")
            message: Error message details
        """
        print()
        print(f"{ErrorFormatter.RED}✗ {title}{ErrorFormatter.RESET}")
        print()
        print(message)
        print()

    @staticmethod
    def print_success(message: str) -> None:
        """Print formatted success message."""
        print()
        print(f"{ErrorFormatter.GREEN}✓ {message}{ErrorFormatter.RESET}")

    @staticmethod
    def print_warning(message: str) -> None:
        """Print formatted warning message."""
        print()
        print(f"{ErrorFormatter.YELLOW}✗ {message}{ErrorFormatter.RESET}")

    @staticmethod
    def handle_configuration_error(error: ConfigurationError) -> None:
        """Report a fatal configuration error and exit with status 2.

        Args:
            error: The ConfigurationError to handle
        """
        ErrorFormatter.print_error(f"Error: {type(error).__name__}", str(error))
        sys.exit(2)

    @staticmethod
    def handle_keyboard_interrupt() -> None:
        """Handle KeyboardInterrupt with standard formatting."""
        ErrorFormatter.print_warning("Interrupted")
        sys.exit(130)  # Standard exit code for SIGINT

    @staticmethod
    def handle_unexpected_error(error: Exception, verbose: bool = False) -> None:
        """Handle unexpected errors with standard formatting.

        Args:
            error: The exception to handle
            verbose: Whether to print traceback
        """
        message = f"{type(error).__name__}: {error}"
        ErrorFormatter.print_error("Unexpected error", message)

        if verbose:
            import traceback

            print("Traceback:")
            print(traceback.format_exc())

        sys.exit(1)


class PathValidator:
    """Validates user-supplied paths."""

    @staticmethod
    def validate_file(path: Path) -> None:
        """Exit with status 2 unless ``path`` is an existing file."""
        if not path.exists():
            print(f"{ErrorFormatter.RED}✗ Error: Path does not exist: {path}{ErrorFormatter.RESET}")
            sys.exit(2)
        if not path.is_file():
            print(f"{ErrorFormatter.RED}✗ Error: Path is not a file: {path}{ErrorFormatter.RESET}")
            sys.exit(2)
