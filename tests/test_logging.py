import json
import logging

from cargogate.logging import (
    ContextFilter,
    JsonFormatter,
    get_log_context,
    log_context,
    log_extra,
    set_log_context,
    setup_logging,
)


def _record(**extra):
    record = logging.LogRecord("cargogate.test", logging.INFO, __file__, 1, "Stage passed", (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_log_extra_drops_none_values():
    assert log_extra(stage="clippy", toolchain=None, exit_code=None, duration_seconds=1.5) == {
        "stage": "clippy",
        "duration_seconds": 1.5,
    }


def test_context_filter_applies_defaults_and_context():
    record = _record()
    with log_context(stage="doc", run_id="abc"):
        assert ContextFilter().filter(record)
    assert record.stage == "doc"
    assert record.run_id == "abc"
    assert record.toolchain == "-"
    assert get_log_context() == {}


def test_explicit_extra_wins_over_context():
    set_log_context(stage="fmt")
    record = _record(stage="test")
    ContextFilter().filter(record)
    assert record.stage == "test"


def test_json_formatter_includes_extra_fields():
    record = _record(exit_code=101, flags=("--all-features",))
    ContextFilter().filter(record)
    data = json.loads(JsonFormatter().format(record))
    assert data["message"] == "Stage passed"
    assert data["level"] == "INFO"
    assert data["exit_code"] == 101
    assert data["flags"] == ["--all-features"]
    assert data["stage"] == "-"


def test_setup_logging_installs_single_handler():
    logger = setup_logging("debug", json_output=True)
    root = logging.getLogger()
    assert logger.name == "cargogate"
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, JsonFormatter)


def test_setup_logging_ignores_process_environment(monkeypatch):
    monkeypatch.setenv("CARGOGATE_LOG_LEVEL", "DEBUG")
    setup_logging()
    assert logging.getLogger().level == logging.INFO
