from __future__ import annotations

import json

import pytest

from reduxmachine import (
    ActionError, ConfigurationError, CyclicChainError, DisposedStoreError, ErrorHandler,
    ReducerError, ReduxMachineError, StoreBuilder, ValidationError,
)

from fixture_states import Car, CarActions, error_reducer


def test_error_hierarchy():
    assert issubclass(CyclicChainError, ActionError)
    for cls in (ActionError, ValidationError, ReducerError, ConfigurationError, DisposedStoreError):
        assert issubclass(cls, ReduxMachineError)


def test_error_details_and_str():
    err = ActionError("bad action", "push", payload=3)
    assert err.details == {"action_name": "push", "payload": 3}
    assert str(err) == "bad action (action_name='push', payload=3)"

    info = err.to_dict()
    assert info["error_type"] == "ActionError"
    assert info["message"] == "bad action"
    assert info["traceback"] == ""


def test_traceback_captured_inside_except():
    try:
        raise KeyError("x")
    except KeyError:
        err = ReduxMachineError("wrapped")
    assert "KeyError" in err.traceback


def test_handler_logs_to_console(capsys):
    handler = ErrorHandler()
    handler.handle(ReducerError("reducer failed", reducer_name="r", action_name="a"))

    out = capsys.readouterr().out
    assert "❌ ReducerError: reducer failed" in out


def test_handler_wraps_plain_exceptions():
    seen = []
    handler = ErrorHandler(log_to_console=False)
    handler.register_handler(seen.append)
    original = ValueError("plain")
    handler.handle(original)

    assert isinstance(seen[0], ReduxMachineError)
    assert seen[0].__cause__ is original
    assert seen[0].details["original_type"] == "ValueError"


def test_handler_logs_to_file(tmp_path):
    log_file = tmp_path / "errors.log"
    handler = ErrorHandler(log_to_console=False, log_to_file=True, log_file=str(log_file))
    store = StoreBuilder(initial_state=Car(), error_handler=handler).bind(CarActions.error, error_reducer).build()
    store.errors.subscribe(lambda error: None)

    store.dispatch(CarActions.error())
    store.dispatch(CarActions.error())

    lines = log_file.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    record = json.loads(lines[0])
    assert record["error_type"] == "ReducerError"
    assert record["details"]["action_name"] == "'error'"
    assert "RuntimeError" in record["traceback"]
    assert "timestamp" in record


def test_file_logging_requires_path():
    with pytest.raises(ConfigurationError):
        ErrorHandler(log_to_file=True)
