"""
cargo-gate Toolchain Resolver

Decides which installed Rust toolchain executes every command of a run.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from cargogate.errors import UsageError

USAGE = "Usage: {prog} [<toolchain>]"


@dataclass(frozen=True)
class Toolchain:
    """
    A toolchain selector. name=None means the ambient default.

    A named toolchain wraps every command as `rustup run -- <name> <cmd...>`.
    """
    name: Optional[str] = None

    @property
    def is_default(self) -> bool:
        return self.name is None

    @property
    def prefix(self) -> List[str]:
        if self.name is None:
            return []
        return ["rustup", "run", "--", self.name]

    def wrap(self, argv: Sequence[str]) -> List[str]:
        return [*self.prefix, *argv]

    def __str__(self) -> str:
        return "default" if self.name is None else self.name


def resolve_toolchain(args: Sequence[str], prog: str = "cargo-gate") -> Toolchain:
    """
    Resolve the positional command-line arguments into a Toolchain.

    Raises:
        UsageError: more than one argument
    """
    if len(args) > 1:
        raise UsageError(USAGE.format(prog=prog), metadata={"arguments": list(args)})
    if not args:
        return Toolchain()
    return Toolchain(name=args[0])
