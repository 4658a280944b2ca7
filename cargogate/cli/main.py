"""
cargo-gate CLI

Click-based entry point: resolve the toolchain, pick features, run the stages.
"""

import sys
import uuid
from pathlib import Path
from typing import Optional, Tuple

import click

from cargogate import __version__
from cargogate.config import load_config
from cargogate.context import build_context, resolve_project_root
from cargogate.errors import CargoGateError, UsageError
from cargogate.logging import (
    EXIT_INTERRUPTED,
    get_logger,
    init_cli_logging,
    log_extra,
    set_log_context,
)
from cargogate.pipeline import Pipeline
from cargogate.runner import CommandRunner, DryRunRunner, ProcessRunner, SubprocessRunner, echo_console
from cargogate.toolchain import resolve_toolchain

logger = get_logger(__name__)


def make_process_runner(dry_run: bool) -> ProcessRunner:
    """Create the process launcher for this run."""
    return DryRunRunner() if dry_run else SubprocessRunner()


def _fail(exc: CargoGateError) -> None:
    logger.error(str(exc), extra=log_extra(error_category=exc.category, **exc.metadata))
    click.echo(f"error: {exc}", err=True)
    sys.exit(exc.exit_code)


@click.command("cargo-gate", context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("toolchain", nargs=-1)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option("--json", "json_output", is_flag=True, help="Emit log records as JSON")
@click.option("--dry-run", is_flag=True, help="Echo stage commands without running them")
@click.option(
    "--project-root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Directory to run every command in",
)
@click.option("--color/--no-color", default=None, help="Force or disable colored command echo")
@click.version_option(__version__, prog_name="cargo-gate")
@click.pass_context
def cli(
    ctx: click.Context,
    toolchain: Tuple[str, ...],
    verbose: bool,
    json_output: bool,
    dry_run: bool,
    project_root: Optional[Path],
    color: Optional[bool],
) -> None:
    """Run fmt, clippy, doc, doc tests and tests, stopping at the first failure.

    TOOLCHAIN names an installed rustup toolchain; all commands then run
    through `rustup run -- TOOLCHAIN`.
    """
    prog = ctx.info_name or "cargo-gate"
    try:
        selected = resolve_toolchain(toolchain, prog=prog)
    except UsageError as exc:
        click.echo(str(exc), err=True)
        sys.exit(exc.exit_code)

    try:
        config = load_config()
    except CargoGateError as exc:
        click.echo(f"error: {exc}", err=True)
        sys.exit(exc.exit_code)

    init_cli_logging(
        level="DEBUG" if verbose else config.log_level,
        json_output=json_output or config.log_json,
    )
    set_log_context(run_id=uuid.uuid4().hex[:12], toolchain=str(selected))

    root = resolve_project_root(project_root, config)
    runner = CommandRunner(
        make_process_runner(dry_run),
        cwd=root,
        env=config.child_env(),
        console=echo_console(color),
    )

    try:
        context = build_context(config, selected, runner, root)
        result = Pipeline(context, runner).run()
    except CargoGateError as exc:
        _fail(exc)
        return
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        sys.exit(EXIT_INTERRUPTED)

    sys.exit(result.exit_code)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
