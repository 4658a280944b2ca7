"""
cargo-gate Version Gate

Structured, numerically ordered toolchain versions and the gate that checks the
active toolchain against the minimum that supports --all-features.
"""

import functools
import re
from dataclasses import dataclass
from typing import Optional, Tuple

from cargogate.errors import ToolchainError, VersionParseError
from cargogate.logging import get_logger
from cargogate.runner import CommandRunner, format_command
from cargogate.toolchain import Toolchain

logger = get_logger(__name__)

# first dotted-numeric token not glued to a word, e.g. "1.52.0" in "rustc 1.52.0-nightly (...)"
_VERSION_RE = re.compile(r"(?<![\w.])(\d+(?:\.\d+)*)")


@functools.total_ordering
@dataclass(frozen=True, eq=False)
class Version:
    """
    Dotted-numeric version compared component by component.

    Missing trailing components count as zero, so 1.52 == 1.52.0 and
    1.52 > 1.9. Pre-release and build suffixes are not part of the value.
    """
    components: Tuple[int, ...]

    @classmethod
    def parse(cls, text: str) -> "Version":
        match = _VERSION_RE.search(text or "")
        if not match:
            raise VersionParseError(f"No version found in {text!r}", metadata={"text": text})
        return cls(tuple(int(part) for part in match.group(1).split(".")))

    def _padded(self, width: int) -> Tuple[int, ...]:
        return self.components + (0,) * (width - len(self.components))

    def _normalized(self) -> Tuple[int, ...]:
        parts = list(self.components)
        while len(parts) > 1 and parts[-1] == 0:
            parts.pop()
        return tuple(parts)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._normalized() == other._normalized()

    def __lt__(self, other: "Version") -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        width = max(len(self.components), len(other.components))
        return self._padded(width) < other._padded(width)

    def __hash__(self) -> int:
        return hash(self._normalized())

    def __str__(self) -> str:
        return ".".join(str(part) for part in self.components)


# --all-features pulls in "_unsafe-op-in-unsafe-fn", which needs Rust 1.52+
MIN_RUST_VERSION = Version.parse("1.52")


class VersionGate:
    """
    Asks the resolved toolchain for its version and compares it to a minimum.

    The query runs at most once per gate; a failing `rustc --version` is fatal
    and surfaces as ToolchainError carrying that command's exit status.
    """

    def __init__(self, runner: CommandRunner, toolchain: Toolchain) -> None:
        self.runner = runner
        self.toolchain = toolchain
        self._version: Optional[Version] = None

    @property
    def command(self):
        return self.toolchain.wrap(["rustc", "--version"])

    def query(self) -> Version:
        if self._version is not None:
            return self._version

        argv = self.command
        result = self.runner.capture(argv)
        if not result.ok:
            raise ToolchainError(
                f"`{format_command(argv)}` failed with exit status {result.exit_code}",
                metadata={"toolchain": str(self.toolchain), "command": format_command(argv)},
                exit_code=result.exit_code,
            )

        self._version = Version.parse(result.stdout.strip())
        logger.info(
            "Detected toolchain version",
            extra={"toolchain": str(self.toolchain), "version": str(self._version)},
        )
        return self._version

    def is_at_least(self, minimum: Version = MIN_RUST_VERSION) -> bool:
        return self.query() >= minimum
