"""
cargo-gate Error Hierarchy

Base error and specific error types for all cargo-gate components.
Errors carry metadata for structured logging and the exit status the CLI
terminates with.
"""

from typing import Any, Dict, Optional


class CargoGateError(RuntimeError):
    """
    Base error for cargo-gate components. Carries metadata for structured logging.

    Attributes:
        category: Error category for classification (e.g., "usage", "toolchain")
        exit_code: Process exit status used when the error reaches the CLI
        metadata: Additional context for logging and debugging
    """

    category: str = "runtime"
    exit_code: int = 1

    def __init__(
        self,
        message: str,
        *,
        metadata: Optional[Dict[str, Any]] = None,
        exit_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.metadata = metadata or {}
        if exit_code is not None:
            self.exit_code = exit_code


# Invocation Errors
class UsageError(CargoGateError):
    """Raised when the command line has the wrong shape."""

    category = "usage"
    exit_code = 2


class ConfigError(CargoGateError):
    """Raised when configuration is invalid or missing."""

    category = "config"
    exit_code = 2


# Toolchain Errors
class ToolchainError(CargoGateError):
    """
    Raised when the toolchain cannot report its version.

    The exit code is the failing command's own status.
    """

    category = "toolchain"


class VersionParseError(ToolchainError):
    """Raised when a version report contains no dotted-numeric version."""

    category = "toolchain"
    exit_code = 1
