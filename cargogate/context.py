"""
cargo-gate Run Context

Everything a run depends on, resolved once at startup and read-only afterwards.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from cargogate.config import Config
from cargogate.features import FeatureSet, select_features
from cargogate.logging import get_logger
from cargogate.runner import CommandRunner
from cargogate.toolchain import Toolchain
from cargogate.version import VersionGate

logger = get_logger(__name__)

MANIFEST_NAME = "Cargo.toml"


@dataclass(frozen=True)
class RunContext:
    """Immutable per-run state shared by every stage."""
    toolchain: Toolchain
    features: FeatureSet
    project_root: Path


def find_project_root(start: Path) -> Optional[Path]:
    """Nearest directory at or above `start` that holds a Cargo.toml."""
    start = start.resolve()
    for candidate in (start, *start.parents):
        if (candidate / MANIFEST_NAME).is_file():
            return candidate
    return None


def resolve_project_root(explicit: Optional[Path], config: Config, cwd: Optional[Path] = None) -> Path:
    """
    Pick the directory every command runs in.

    Order: explicit (--project-root), CARGOGATE_PROJECT_ROOT, the nearest
    ancestor of the current directory holding Cargo.toml, the current directory.
    """
    cwd = (cwd or Path.cwd()).resolve()
    if explicit is not None:
        return explicit.expanduser().resolve()
    if config.project_root is not None:
        return config.project_root.resolve()
    return find_project_root(cwd) or cwd


def build_context(
    config: Config,
    toolchain: Toolchain,
    runner: CommandRunner,
    project_root: Path,
    cwd: Optional[Path] = None,
) -> RunContext:
    """
    Enter the project root and resolve the feature set.

    The `cd` is echoed like any other command when the root differs from the
    caller's directory; the runner already executes everything there.
    Raises ToolchainError when the version query fails.
    """
    cwd = (cwd or Path.cwd()).resolve()
    if project_root != cwd:
        runner.echo(["cd", str(project_root)])

    gate = VersionGate(runner, toolchain)
    features = select_features(config.features_override, gate)
    logger.debug(
        "Run context ready",
        extra={"toolchain": str(toolchain), "project_root": str(project_root), "policy": features.policy.value},
    )
    return RunContext(toolchain=toolchain, features=features, project_root=project_root)
