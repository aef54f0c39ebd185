"""
Command-line entry point of the calculator.

Sub-commands:
- eval: evaluate an expression and show its steps
- fn: apply a scientific function to a number
- history: list the most recent calculations
- clear: delete the history
- batch: evaluate every expression of a text file or archive

Every successful calculation is stored in the SQLite history.
"""
import argparse
import asyncio
import sqlite3
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, FilePath, ValidationError

from stepwise_calculator.app.session import ERROR_TEXT, CalculatorSession
from stepwise_calculator.common.config import CalculatorSettings
from stepwise_calculator.common.errors import CalculatorError
from stepwise_calculator.common.loader import build_output_path, read_expressions
from stepwise_calculator.common.logger import configure_logging, logger
from stepwise_calculator.common.parser import ExpressionParser


class CliArgs(BaseModel):
    """
    Pydantic model used to validate CLI arguments.

    Attributes
    ----------
    command : str
        Selected sub-command.
    settings : CalculatorSettings
        Settings built from the global options.
    expression : str, optional
        Expression of the eval command.
    function : str, optional
        Function name of the fn command.
    operand : str
        Operand of the fn command, as typed.
    limit : int, optional
        Record count of the history command.
    file_path : FilePath, optional
        Input of the batch command.
    """

    command: str
    settings: CalculatorSettings
    expression: Optional[str] = None
    function: Optional[str] = None
    operand: str = ""
    limit: Optional[int] = Field(default=None, ge=1)
    file_path: Optional[FilePath] = None


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one sub-parser per command."""
    parser = argparse.ArgumentParser(
        prog="stepwise-calculator",
        description="Calculator with step-by-step results and persistent history",
    )
    parser.add_argument("--db", dest="db_path", default="calculator.db", help="SQLite history database file")
    parser.add_argument("--history-limit", type=int, default=20, help="Number of history records kept in view")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress to stderr")

    commands = parser.add_subparsers(dest="command", required=True)

    eval_parser = commands.add_parser("eval", help="Evaluate an arithmetic expression")
    eval_parser.add_argument("expression", help='Expression such as "2+3*4"')

    fn_parser = commands.add_parser("fn", help="Apply a scientific function")
    fn_parser.add_argument("function", help="sin, cos, tan, log, ln, sqrt, square, factorial, pi or e")
    fn_parser.add_argument("operand", nargs="?", default="", help="Number the function is applied to")

    history_parser = commands.add_parser("history", help="Show the most recent calculations")
    history_parser.add_argument("--limit", type=int, default=None, help="Number of records to show")

    commands.add_parser("clear", help="Delete the calculation history")

    batch_parser = commands.add_parser("batch", help="Evaluate every line of a .txt, .zip, .tar.xz or .7z file")
    batch_parser.add_argument("file_path", help="Path to the file containing arithmetic expressions")

    return parser


def parse_args(argv: Optional[List[str]] = None) -> CliArgs:
    """
    Parse and validate command-line arguments.

    :param argv: Arguments without the program name (defaults to sys.argv)
    :return: Validated CLI arguments
    :rtype: CliArgs
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = CalculatorSettings(
            db_path=args.db_path,
            history_limit=args.history_limit,
            log_level="INFO" if args.verbose else "WARNING",
        )
        return CliArgs(
            command=args.command,
            settings=settings,
            expression=getattr(args, "expression", None),
            function=getattr(args, "function", None),
            operand=getattr(args, "operand", ""),
            limit=getattr(args, "limit", None),
            file_path=getattr(args, "file_path", None),
        )
    except ValidationError as exc:
        parser.error(str(exc))


def print_evaluation(session: CalculatorSession) -> None:
    """Print the session result followed by its numbered steps."""
    print(session.result_text)
    for number, step in enumerate(session.steps, start=1):
        print(f"  {number}. {step}")


async def run_batch(session: CalculatorSession, input_path: Path) -> Path:
    """
    Evaluate every expression of a file and write one result line per expression.

    :param CalculatorSession session: Session storing the successful calculations
    :param Path input_path: Text file or archive of expressions

    :return: Path of the results file
    :rtype: Path
    """
    output_path = build_output_path(input_path)
    expressions = read_expressions(input_path)
    logger.info(f"📄 Evaluating {len(expressions)} expression(s) from {input_path}")

    with output_path.open("w", encoding="utf-8") as f_out:
        for expr in expressions:
            try:
                # Evaluate first to keep the failure message for the results file
                ExpressionParser.evaluate(expr)
            except CalculatorError as exc:
                f_out.write(f"{expr} -> ERROR: {exc}\n")
            else:
                evaluation = await session.calculate(expr)
                f_out.write(f"{expr} = {evaluation.result_text}\n")
            # Keep progress on disk if the run is interrupted
            f_out.flush()

    logger.info(f"📄✅ Results written to {output_path}")
    return output_path


async def run(cli_args: CliArgs) -> int:
    """
    Execute the selected command.

    :param CliArgs cli_args: Validated arguments
    :return: Process exit code
    :rtype: int
    """
    session = CalculatorSession(settings=cli_args.settings)

    if cli_args.command == "eval":
        await session.calculate(cli_args.expression)
        print_evaluation(session)
        return 1 if session.result_text == ERROR_TEXT else 0

    if cli_args.command == "fn":
        session.input_text = cli_args.operand
        await session.apply_function(cli_args.function)
        print_evaluation(session)
        return 1 if session.result_text == ERROR_TEXT else 0

    if cli_args.command == "history":
        limit = cli_args.limit or cli_args.settings.history_limit
        records = await asyncio.to_thread(session.store.list_recent, limit)
        if not records:
            print("No history yet")
        for record in records:
            print(f"{record.input_text} = {record.result_text}")
        return 0

    if cli_args.command == "clear":
        deleted = await session.clear_history()
        print(f"Cleared {deleted} calculation(s)")
        return 0

    output_path = await run_batch(session, Path(cli_args.file_path))
    print(output_path)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main function of the stepwise-calculator command.
    """
    cli_args = parse_args(argv)
    configure_logging(cli_args.settings.log_level)
    try:
        return asyncio.run(run(cli_args))
    except (ValueError, sqlite3.Error, OSError) as exc:
        # Unsupported or empty batch archives, unusable history database
        logger.error(f"❌ {exc}")
        print(f"error: {exc}")
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
