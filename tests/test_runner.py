import io
import sys

import pytest
from rich.console import Console

from cargogate.runner import (
    EXIT_NOT_FOUND,
    CommandOutput,
    CommandRunner,
    DryRunRunner,
    SubprocessRunner,
    echo_console,
    format_command,
    normalize_returncode,
)
from tests.fakes import FakeProcessRunner, echoed, make_command_runner


def test_run_echoes_exact_command_before_executing(tmp_path):
    fake = FakeProcessRunner(exit_codes=[0])
    runner = make_command_runner(fake, cwd=tmp_path, env={"CARGO_TERM_COLOR": "always"})

    assert runner.run(["rustup", "run", "--", "nightly", "cargo", "fmt", "--all", "--", "--check"]) == 0
    assert echoed(runner) == ["rustup run -- nightly cargo fmt --all -- --check"]
    assert fake.cwds == [tmp_path]
    assert fake.envs == [{"CARGO_TERM_COLOR": "always"}]


@pytest.mark.parametrize("status", [1, 2, 101, 127])
def test_run_propagates_exit_status_unchanged(status):
    fake = FakeProcessRunner(exit_codes=[status])
    assert make_command_runner(fake).run(["cargo", "test"]) == status
    assert len(fake.calls) == 1


def test_echo_is_colored_when_terminal_forced():
    console = Console(file=io.StringIO(), force_terminal=True, color_system="standard", highlight=False)
    runner = CommandRunner(FakeProcessRunner(), console=console)
    runner.run(["cargo", "doc"])
    output = console.file.getvalue()
    assert "\x1b[33m" in output
    assert "cargo doc" in output


def test_capture_is_not_echoed():
    fake = FakeProcessRunner(version_output="rustc 1.60.0\n")
    runner = make_command_runner(fake)
    assert runner.capture(["rustc", "--version"]) == CommandOutput(0, "rustc 1.60.0\n")
    assert echoed(runner) == []


def test_format_command_quotes_arguments_with_spaces():
    assert format_command(["cargo", "test", "--features=a b"]) == "cargo test '--features=a b'"


def test_signal_return_codes_map_to_shell_form():
    assert normalize_returncode(-9) == 137
    assert normalize_returncode(-2) == 130
    assert normalize_returncode(3) == 3


def test_subprocess_runner_returns_child_status(tmp_path):
    runner = SubprocessRunner()
    assert runner.call([sys.executable, "-c", "import sys; sys.exit(3)"], cwd=tmp_path) == 3
    assert runner.call([sys.executable, "-c", "pass"]) == 0


def test_subprocess_runner_captures_stdout():
    output = SubprocessRunner().capture([sys.executable, "-c", "print('rustc 1.60.0')"])
    assert output.ok
    assert output.stdout.strip() == "rustc 1.60.0"


def test_subprocess_runner_reports_missing_command(tmp_path):
    missing = str(tmp_path / "no-such-cargo")
    assert SubprocessRunner().call([missing]) == EXIT_NOT_FOUND
    assert SubprocessRunner().capture([missing]).exit_code == EXIT_NOT_FOUND


def test_dry_run_skips_streamed_commands(tmp_path):
    marker = tmp_path / "ran"
    runner = DryRunRunner()
    assert runner.call([sys.executable, "-c", f"open({str(marker)!r}, 'w').close()"]) == 0
    assert not marker.exists()


def test_default_echo_console_colors_without_a_terminal(monkeypatch):
    monkeypatch.delenv("NO_COLOR", raising=False)
    console = echo_console()
    console.file = io.StringIO()
    CommandRunner(FakeProcessRunner(), console=console).run(["cargo", "doc"])
    assert console.file.getvalue().startswith("\x1b[33mcargo doc")


def test_echo_console_without_color():
    console = echo_console(False)
    console.file = io.StringIO()
    CommandRunner(FakeProcessRunner(), console=console).run(["cargo", "doc"])
    assert console.file.getvalue() == "cargo doc\n"
