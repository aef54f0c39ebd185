"""Test class CalculatorSession."""
import asyncio
from pathlib import Path
import sqlite3

import pytest

from stepwise_calculator.app.session import ERROR_TEXT, CalculatorSession
from stepwise_calculator.common.config import CalculatorSettings
from stepwise_calculator.storage.history import HistoryStore


@pytest.fixture
def session(tmp_path: Path) -> CalculatorSession:
    """Session storing its history in a temporary database."""
    return CalculatorSession(settings=CalculatorSettings(db_path=tmp_path / "calculator.db", history_limit=3))


def test_press_builds_input(session: CalculatorSession) -> None:
    """Keys are appended to the input buffer."""
    for key in "2+3":
        session.press(key)
    assert session.input_text == "2+3"


def test_press_clear_resets_display(session: CalculatorSession) -> None:
    """'C' clears input, result and steps."""
    asyncio.run(session.calculate("2*3"))
    session.press("C")
    assert (session.input_text, session.result_text, session.steps) == ("", "", [])


def test_toggle_mode(session: CalculatorSession) -> None:
    """The keypad mode flips between basic and scientific."""
    assert session.toggle_mode() is True
    assert session.toggle_mode() is False


def test_calculate_shows_result_and_steps(session: CalculatorSession) -> None:
    """A successful calculation updates the display and the history."""
    for key in "2+3*4":
        session.press(key)
    evaluation = asyncio.run(session.calculate())

    assert evaluation.value == 14.0
    assert session.result_text == "14"
    assert session.steps == ["3 * 4 = 12", "2 + 12 = 14"]
    assert [(r.input_text, r.result_text) for r in session.history] == [("2+3*4", "14")]
    assert len(session.store.list_recent()) == 1


@pytest.mark.parametrize("expr", ["2+3a", "2++", "+", ""])
def test_calculate_error_is_not_stored(session: CalculatorSession, expr: str) -> None:
    """Invalid input shows 'Error', no steps, and nothing is stored."""
    assert asyncio.run(session.calculate(expr)) is None
    assert session.result_text == ERROR_TEXT
    assert session.steps == []
    assert session.history == []
    assert session.store.list_recent() == []


def test_history_is_capped(session: CalculatorSession) -> None:
    """The session keeps only the configured number of records in view."""
    for n in range(5):
        asyncio.run(session.calculate(f"{n}+1"))
    assert [r.input_text for r in session.history] == ["4+1", "3+1", "2+1"]


def test_load_history(tmp_path: Path) -> None:
    """A new session loads earlier calculations from the store."""
    store = HistoryStore(db_path=tmp_path / "calculator.db")
    store.insert("1+1", "2")
    store.insert("2+2", "4")

    session = CalculatorSession(settings=CalculatorSettings(db_path=store.db_path), store=store)
    records = asyncio.run(session.load_history())
    assert [r.input_text for r in records] == ["2+2", "1+1"]
    assert session.history == records


def test_apply_function(session: CalculatorSession) -> None:
    """Scientific functions apply to the input buffer and are stored as calls."""
    session.press("9")
    asyncio.run(session.apply_function("√"))

    assert session.result_text == "3"
    assert session.steps == ["√(9) = 3"]
    assert session.history[0].input_text == "√(9)"


def test_apply_function_negative_factorial(session: CalculatorSession) -> None:
    """A negative factorial shows NaN rather than failing."""
    session.press("-3")
    asyncio.run(session.apply_function("!"))
    assert session.result_text == "NaN"


def test_apply_unknown_function(session: CalculatorSession) -> None:
    """An unknown function shows 'Error'."""
    assert asyncio.run(session.apply_function("sinh")) is None
    assert session.result_text == ERROR_TEXT


def test_clear_history(session: CalculatorSession) -> None:
    """clear_history empties the store and the session history."""
    asyncio.run(session.calculate("1+2"))
    assert asyncio.run(session.clear_history()) == 1
    assert session.history == []
    assert session.store.list_recent() == []


def test_storage_failure_keeps_result(tmp_path: Path, caplog) -> None:
    """A failing store is logged while the result stays displayed."""
    class LockedStore:
        def insert(self, input_text, result_text):
            raise sqlite3.OperationalError("database is locked")

    session = CalculatorSession(settings=CalculatorSettings(db_path=tmp_path / "calculator.db"), store=LockedStore())

    evaluation = asyncio.run(session.calculate("6/4"))
    assert evaluation.value == 1.5
    assert session.result_text == "1.5"
    assert session.history == []
    assert "database is locked" in caplog.text


def test_unwritable_database_path_keeps_result(tmp_path: Path, caplog) -> None:
    """A database path below a regular file is logged while the result stays displayed."""
    blocker = tmp_path / "blocker"
    blocker.write_text("not a folder")
    session = CalculatorSession(settings=CalculatorSettings(db_path=blocker / "calculator.db"))

    evaluation = asyncio.run(session.calculate("6/4"))
    assert evaluation.value == 1.5
    assert session.result_text == "1.5"
    assert session.steps == ["6 / 4 = 1.5"]
    assert session.history == []
    assert "Could not store" in caplog.text
