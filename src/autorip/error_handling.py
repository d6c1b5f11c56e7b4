"""Error types and user-facing error display for autorip."""

import logging
import shutil
import sys
from enum import Enum
from pathlib import Path

from rich.console import Console

logger = logging.getLogger(__name__)
console = Console()


class ErrorCategory(Enum):
    """Categories of errors for better user experience."""

    CONFIGURATION = "configuration"
    DEPENDENCY = "dependency"
    FILESYSTEM = "filesystem"
    MEDIA = "media"
    EXTERNAL_TOOL = "external_tool"
    NETWORK = "network"
    SYSTEM = "system"


class AutoRipError(Exception):
    """Base exception for autorip."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory,
        *,
        solution: str | None = None,
        details: str | None = None,
        recoverable: bool = True,
        log_level: int = logging.ERROR,
        original_error: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.solution = solution
        self.details = details
        self.recoverable = recoverable
        self.log_level = log_level
        self.original_error = original_error

    def display_to_user(self) -> None:
        """Display error to user with helpful context."""
        category_colors = {
            ErrorCategory.CONFIGURATION: "yellow",
            ErrorCategory.DEPENDENCY: "red",
            ErrorCategory.FILESYSTEM: "red",
            ErrorCategory.MEDIA: "blue",
            ErrorCategory.EXTERNAL_TOOL: "red",
            ErrorCategory.NETWORK: "magenta",
            ErrorCategory.SYSTEM: "red",
        }
        color = category_colors.get(self.category, "red")

        console.print(
            f"\n[{color} bold]{self.category.value.replace('_', ' ').title()} "
            f"Error[/{color} bold]",
        )
        console.print(f"[{color}]{self.message}[/{color}]")

        if self.details:
            console.print(f"\n[dim]Details:[/dim] {self.details}")

        if self.solution:
            console.print(f"\n[green]Solution:[/green] {self.solution}")

        if self.recoverable:
            console.print(
                "\n[dim]This error may be temporary. You can try again.[/dim]",
            )
        else:
            console.print(
                "\n[dim]This error requires intervention before continuing.[/dim]",
            )

        if self.original_error:
            logger.log(
                self.log_level,
                "%s: %s",
                self.category.value,
                self.message,
                exc_info=self.original_error,
            )
        else:
            logger.log(self.log_level, "%s: %s", self.category.value, self.message)


class ConfigurationError(AutoRipError):
    """Configuration-related errors."""

    def __init__(self, message: str, *, config_path: Path | None = None, **kwargs):
        solution = kwargs.pop("solution", None)
        if not solution and config_path:
            solution = f"Check your configuration file at {config_path}"
        super().__init__(
            message,
            ErrorCategory.CONFIGURATION,
            solution=solution,
            **kwargs,
        )


class DependencyError(AutoRipError):
    """Missing or broken dependency errors."""

    def __init__(
        self,
        dependency: str,
        *,
        install_command: str | None = None,
        **kwargs,
    ):
        message = kwargs.pop(
            "message",
            f"Required dependency '{dependency}' is not available",
        )
        solution = kwargs.pop("solution", None)
        if not solution and install_command:
            solution = f"Install with: {install_command}"
        super().__init__(
            message,
            ErrorCategory.DEPENDENCY,
            solution=solution,
            recoverable=False,
            **kwargs,
        )
        self.dependency = dependency


class ExecutableNotFoundError(DependencyError):
    """The disc tool binary could not be launched.

    Raised by the MakeMKV collaborators when ``makemkvcon`` is missing from
    PATH. The polling loop treats it as a quiet transient condition because
    the tool is often installed or mounted after the service starts.
    """

    def __init__(self, executable: str, **kwargs):
        super().__init__(
            executable,
            message=f"{executable} executable not found",
            solution=kwargs.pop(
                "solution",
                "Install MakeMKV from https://makemkv.com/ or set makemkv_con",
            ),
            **kwargs,
        )
        self.executable = executable


class MediaError(AutoRipError):
    """The disc could not be read into any output."""

    def __init__(self, message: str, **kwargs):
        solution = kwargs.pop(
            "solution",
            "Try cleaning the disc or using a different disc",
        )
        super().__init__(message, ErrorCategory.MEDIA, solution=solution, **kwargs)


class ExternalToolError(AutoRipError):
    """External tool execution errors."""

    def __init__(
        self,
        tool: str,
        exit_code: int | None = None,
        stderr: str | None = None,
        **kwargs,
    ):
        message = kwargs.pop("message", None) or f"{tool} failed"
        if exit_code is not None:
            message += f" with exit code {exit_code}"

        details = kwargs.pop("details", stderr)
        solution = kwargs.pop(
            "solution",
            f"Check {tool} is properly installed and configured",
        )

        super().__init__(
            message,
            ErrorCategory.EXTERNAL_TOOL,
            details=details,
            solution=solution,
            **kwargs,
        )
        self.tool = tool
        self.exit_code = exit_code


def is_executable_missing(error: BaseException) -> bool:
    """True for the 'tool not installed yet' condition polled around quietly."""
    if isinstance(error, ExecutableNotFoundError):
        return True
    return "executable not found" in str(error)


def handle_error(
    error: Exception,
    *,
    category: ErrorCategory | None = None,
    **kwargs,
) -> None:
    """Convert generic exceptions to AutoRipError and display to user."""
    if isinstance(error, AutoRipError):
        error.display_to_user()
        return

    if category is None:
        if isinstance(error, FileNotFoundError | PermissionError):
            category = ErrorCategory.FILESYSTEM
        elif isinstance(error, ConnectionError | TimeoutError):
            category = ErrorCategory.NETWORK
        else:
            category = ErrorCategory.SYSTEM

    autorip_error = AutoRipError(
        message=str(error) or "An unexpected error occurred",
        category=category,
        original_error=error,
        **kwargs,
    )
    autorip_error.display_to_user()


def check_dependencies(makemkv_con: str = "makemkvcon") -> list[DependencyError]:
    """Check for missing external tools and return list of errors."""
    errors = []

    if not shutil.which(makemkv_con):
        errors.append(
            DependencyError(
                "MakeMKV",
                solution="Install MakeMKV from https://makemkv.com/ or your package manager",
                details=f"'{makemkv_con}' is required for disc detection and ripping",
            ),
        )

    if not shutil.which("eject"):
        errors.append(
            DependencyError(
                "eject",
                install_command="sudo apt install eject",
                details="eject is only needed when eject_after is enabled",
                log_level=logging.WARNING,
            ),
        )

    return errors


def graceful_exit(exit_code: int = 1) -> None:
    """Exit gracefully with helpful message."""
    if exit_code == 0:
        console.print("\n[green]autorip completed successfully[/green]")
    else:
        console.print("\n[red]autorip encountered errors and had to stop[/red]")
        console.print("[dim]Check the logs above for details on what went wrong[/dim]")
        console.print(
            "[dim]Run 'autorip config validate' to check your configuration[/dim]",
        )

    sys.exit(exit_code)
