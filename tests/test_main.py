"""Test the command-line entry point."""
from pathlib import Path

import pytest

from stepwise_calculator.main import main, parse_args
from stepwise_calculator.storage.history import HistoryStore


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Temporary history database."""
    return tmp_path / "calculator.db"


def test_parse_args_eval(db_path: Path) -> None:
    """Global options end up in the settings."""
    cli_args = parse_args(["--db", str(db_path), "--history-limit", "5", "-v", "eval", "1+1"])
    assert cli_args.command == "eval"
    assert cli_args.expression == "1+1"
    assert cli_args.settings.db_path == db_path
    assert cli_args.settings.history_limit == 5
    assert cli_args.settings.log_level == "INFO"


def test_parse_args_invalid_limit(db_path: Path) -> None:
    """Out of range settings are reported as usage errors."""
    with pytest.raises(SystemExit):
        parse_args(["--db", str(db_path), "--history-limit", "0", "history"])


def test_parse_args_missing_batch_file(tmp_path: Path) -> None:
    """The batch input file must exist."""
    with pytest.raises(SystemExit):
        parse_args(["batch", str(tmp_path / "missing.txt")])


def test_eval_prints_result_and_steps(db_path: Path, capsys) -> None:
    """eval prints the result then the numbered steps, and stores the calculation."""
    assert main(["--db", str(db_path), "eval", "2+3*4"]) == 0

    out = capsys.readouterr().out.splitlines()
    assert out == ["14", "  1. 3 * 4 = 12", "  2. 2 + 12 = 14"]
    assert HistoryStore(db_path=db_path).list_recent()[0].input_text == "2+3*4"


def test_eval_error(db_path: Path, capsys) -> None:
    """A bad expression prints 'Error' and exits with 1."""
    assert main(["--db", str(db_path), "eval", "2+3a"]) == 1
    assert capsys.readouterr().out.strip() == "Error"


def test_fn(db_path: Path, capsys) -> None:
    """fn applies a scientific function to the operand."""
    assert main(["--db", str(db_path), "fn", "sqrt", "16"]) == 0
    assert capsys.readouterr().out.splitlines() == ["4", "  1. sqrt(16) = 4"]


def test_history_and_clear(db_path: Path, capsys) -> None:
    """history lists newest first and clear empties it."""
    main(["--db", str(db_path), "eval", "1+1"])
    main(["--db", str(db_path), "eval", "2*5"])
    capsys.readouterr()

    main(["--db", str(db_path), "history"])
    assert capsys.readouterr().out.splitlines() == ["2*5 = 10", "1+1 = 2"]

    main(["--db", str(db_path), "history", "--limit", "1"])
    assert capsys.readouterr().out.splitlines() == ["2*5 = 10"]

    main(["--db", str(db_path), "clear"])
    assert capsys.readouterr().out.strip() == "Cleared 2 calculation(s)"

    main(["--db", str(db_path), "history"])
    assert capsys.readouterr().out.strip() == "No history yet"


def test_batch(tmp_path: Path, db_path: Path) -> None:
    """batch writes one result line per expression and stores the successful ones."""
    input_file = tmp_path / "ops.txt"
    input_file.write_text("2 + 3\n\n10/4\n2 +\n")

    assert main(["--db", str(db_path), "batch", str(input_file)]) == 0

    results = (tmp_path / "ops_txt_results.txt").read_text().splitlines()
    assert results[0] == "2 + 3 = 5"
    assert results[1] == "10/4 = 2.5"
    assert results[2].startswith("2 + -> ERROR:")
    assert len(HistoryStore(db_path=db_path).list_recent()) == 2


def test_batch_unsupported_archive(tmp_path: Path, db_path: Path, capsys) -> None:
    """An unsupported archive exits with 2."""
    input_file = tmp_path / "ops.rar"
    input_file.write_text("1+1")

    assert main(["--db", str(db_path), "batch", str(input_file)]) == 2
    assert "Unsupported archive format" in capsys.readouterr().out


@pytest.mark.parametrize("command", [["history"], ["clear"]])
def test_unusable_database_exits_with_error(tmp_path: Path, capsys, command) -> None:
    """A database that cannot be opened is reported with exit code 2."""
    assert main(["--db", str(tmp_path), *command]) == 2
    assert capsys.readouterr().out.startswith("error:")


def test_eval_with_unusable_database_still_prints_result(tmp_path: Path, capsys) -> None:
    """eval shows its result even when it cannot be stored."""
    assert main(["--db", str(tmp_path), "eval", "1+2"]) == 0
    assert capsys.readouterr().out.splitlines() == ["3", "  1. 1 + 2 = 3"]


def test_fn_operand_is_not_a_key(db_path: Path, capsys) -> None:
    """The fn operand is read as a number, so 'C' is NaN rather than a clear key."""
    assert main(["--db", str(db_path), "fn", "sqrt", "C"]) == 0
    assert capsys.readouterr().out.splitlines() == ["NaN", "  1. sqrt(NaN) = NaN"]
    assert HistoryStore(db_path=db_path).list_recent()[0].input_text == "sqrt(C)"
