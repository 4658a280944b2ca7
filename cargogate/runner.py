"""
cargo-gate Command Runner

Process invocation split in two layers:
- ProcessRunner: spawns a child and reports its exit status (swappable in tests)
- CommandRunner: echoes the exact command line before delegating to a ProcessRunner
"""

import shlex
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Sequence

from rich.console import Console

from cargogate.logging import get_logger

logger = get_logger(__name__)

ECHO_STYLE = "yellow"

# shell conventions, so the CLI can exit with the status a shell would report
EXIT_NOT_EXECUTABLE = 126
EXIT_NOT_FOUND = 127
_SIGNAL_BASE = 128


@dataclass(frozen=True)
class CommandOutput:
    """Exit status and captured stdout of one captured invocation."""
    exit_code: int
    stdout: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


def normalize_returncode(returncode: int) -> int:
    """Map a negative (signal) return code to the 128+N form a shell uses."""
    if returncode < 0:
        return _SIGNAL_BASE - returncode
    return returncode


def format_command(argv: Sequence[str]) -> str:
    return shlex.join(argv)


def echo_console(color: Optional[bool] = None) -> Console:
    """
    Console for the command echo.

    Colored even when stdout is piped, matching CARGO_TERM_COLOR=always for the
    children; only color=False turns it off.
    """
    if color is False:
        return Console(highlight=False, no_color=True)
    return Console(highlight=False, force_terminal=True, color_system="standard")


class ProcessRunner(ABC):
    """
    Abstract child-process launcher.

    Implementations never raise for a failing command; every outcome is an
    exit status.
    """

    @abstractmethod
    def call(self, argv: Sequence[str], *, cwd: Optional[Path] = None, env: Optional[Mapping[str, str]] = None) -> int:
        """Run with inherited stdout/stderr and block until it exits."""
        ...

    @abstractmethod
    def capture(
        self, argv: Sequence[str], *, cwd: Optional[Path] = None, env: Optional[Mapping[str, str]] = None
    ) -> CommandOutput:
        """Run with stdout captured as text; stderr passes through."""
        ...


class SubprocessRunner(ProcessRunner):
    """ProcessRunner backed by subprocess.run. No timeout is applied."""

    def call(self, argv, *, cwd=None, env=None) -> int:
        try:
            proc = subprocess.run(list(argv), cwd=str(cwd) if cwd else None, env=env, check=False)
        except FileNotFoundError:
            logger.error("Command not found", extra={"command": argv[0]})
            return EXIT_NOT_FOUND
        except PermissionError:
            logger.error("Command not executable", extra={"command": argv[0]})
            return EXIT_NOT_EXECUTABLE
        return normalize_returncode(proc.returncode)

    def capture(self, argv, *, cwd=None, env=None) -> CommandOutput:
        try:
            proc = subprocess.run(
                list(argv),
                cwd=str(cwd) if cwd else None,
                env=env,
                check=False,
                stdout=subprocess.PIPE,
                text=True,
            )
        except FileNotFoundError:
            logger.error("Command not found", extra={"command": argv[0]})
            return CommandOutput(exit_code=EXIT_NOT_FOUND)
        except PermissionError:
            logger.error("Command not executable", extra={"command": argv[0]})
            return CommandOutput(exit_code=EXIT_NOT_EXECUTABLE)
        return CommandOutput(exit_code=normalize_returncode(proc.returncode), stdout=proc.stdout or "")


class DryRunRunner(SubprocessRunner):
    """
    Skips every streamed command but still performs captured queries.

    Used by --dry-run: stage commands are echoed only, while the version
    query still runs so feature selection is real.
    """

    def call(self, argv, *, cwd=None, env=None) -> int:
        logger.debug("Dry run, not executing", extra={"command": format_command(argv)})
        return 0


class CommandRunner:
    """
    Echoing wrapper around a ProcessRunner.

    Every run() prints the fully expanded command line in yellow before the
    child starts, then returns the child's exit status unchanged. The working
    directory and environment are bound once and shared by every invocation.
    """

    def __init__(
        self,
        process_runner: ProcessRunner,
        *,
        cwd: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
        console: Optional[Console] = None,
    ) -> None:
        self.process_runner = process_runner
        self.cwd = cwd
        self.env = dict(env) if env is not None else None
        self.console = console or echo_console()

    def echo(self, argv: Sequence[str]) -> None:
        self.console.print(
            format_command(argv),
            style=ECHO_STYLE,
            markup=False,
            highlight=False,
            soft_wrap=True,
        )

    def run(self, argv: Sequence[str]) -> int:
        self.echo(argv)
        exit_code = self.process_runner.call(argv, cwd=self.cwd, env=self.env)
        logger.debug("Command finished", extra={"command": format_command(argv), "exit_code": exit_code})
        return exit_code

    def capture(self, argv: Sequence[str]) -> CommandOutput:
        """Run a query whose output is consumed rather than shown. Not echoed."""
        logger.debug("Querying", extra={"command": format_command(argv)})
        return self.process_runner.capture(argv, cwd=self.cwd, env=self.env)
