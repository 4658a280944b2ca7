"""
cargo-gate Pipeline Orchestrator

Runs the fixed sequence of verification stages and stops at the first failure.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from cargogate.context import RunContext
from cargogate.logging import get_logger, log_context
from cargogate.runner import CommandRunner

logger = get_logger(__name__)


class StageId(str, Enum):
    """Pipeline stages, in execution order."""
    FORMAT = "fmt"
    LINT = "clippy"
    DOC = "doc"
    DOC_TEST = "doc-test"
    TEST = "test"


@dataclass(frozen=True)
class Stage:
    """
    One verification step mapped to a single cargo invocation.

    The command is `cargo <args> [<features>] <trailing>`; feature flags are
    inserted only when `uses_features` is set, ahead of any `--` section.
    """
    stage_id: StageId
    name: str
    args: Tuple[str, ...]
    trailing: Tuple[str, ...] = ()
    uses_features: bool = False

    def command(self, context: RunContext) -> List[str]:
        features: Sequence[str] = context.features.flags if self.uses_features else ()
        return context.toolchain.wrap(["cargo", *self.args, *features, *self.trailing])


@dataclass
class StageResult:
    """Outcome of one executed stage."""
    stage_id: StageId
    exit_code: int
    duration_seconds: Optional[float] = None

    @property
    def passed(self) -> bool:
        return self.exit_code == 0


@dataclass
class PipelineResult:
    """Outcome of a run: the stages that executed and the status to exit with."""
    results: List[StageResult] = field(default_factory=list)

    @property
    def failed_stage(self) -> Optional[StageResult]:
        for result in self.results:
            if not result.passed:
                return result
        return None

    @property
    def exit_code(self) -> int:
        failed = self.failed_stage
        return failed.exit_code if failed else 0

    @property
    def passed(self) -> bool:
        return self.exit_code == 0


STAGES: Tuple[Stage, ...] = (
    Stage(StageId.FORMAT, "Format check", ("fmt", "--all"), trailing=("--", "--check")),
    # clippy gets the selected features and fails on any warning
    Stage(StageId.LINT, "Lint", ("clippy", "--all-targets"), trailing=("--", "--deny", "warnings"), uses_features=True),
    # catches problems in doc comments
    Stage(StageId.DOC, "Documentation build", ("doc",)),
    # doc examples always run against default features
    Stage(StageId.DOC_TEST, "Documentation tests", ("test", "--doc")),
    Stage(StageId.TEST, "Test suite", ("test", "--all-targets"), uses_features=True),
)


class Pipeline:
    """
    Strictly sequential, fail-fast stage runner.

    Each stage runs once through the echoing CommandRunner. The first non-zero
    exit status ends the run; nothing is retried and later stages never start.
    """

    def __init__(
        self,
        context: RunContext,
        runner: CommandRunner,
        stages: Sequence[Stage] = STAGES,
    ) -> None:
        self.context = context
        self.runner = runner
        self.stages = tuple(stages)

    def run(self) -> PipelineResult:
        result = PipelineResult()
        with log_context(toolchain=str(self.context.toolchain)):
            for stage in self.stages:
                stage_result = self._run_stage(stage)
                result.results.append(stage_result)
                if not stage_result.passed:
                    logger.error(
                        "Stage failed",
                        extra={"stage": stage.stage_id.value, "exit_code": stage_result.exit_code},
                    )
                    return result
        logger.info("All stages passed", extra={"stages": len(result.results)})
        return result

    def _run_stage(self, stage: Stage) -> StageResult:
        with log_context(stage=stage.stage_id.value):
            start = time.monotonic()
            exit_code = self.runner.run(stage.command(self.context))
            duration = time.monotonic() - start
            if exit_code == 0:
                logger.info(
                    "Stage passed",
                    extra={"stage_name": stage.name, "duration_seconds": round(duration, 3)},
                )
        return StageResult(stage_id=stage.stage_id, exit_code=exit_code, duration_seconds=duration)

