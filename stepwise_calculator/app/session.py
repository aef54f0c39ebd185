"""Calculator session: display state plus asynchronous history persistence."""
import asyncio
import sqlite3
from typing import List, Optional

from stepwise_calculator.common.config import CalculatorSettings
from stepwise_calculator.common.errors import CalculatorError
from stepwise_calculator.common.logger import logger
from stepwise_calculator.common.models import Evaluation, HistoryRecord
from stepwise_calculator.common.parser import ExpressionParser
from stepwise_calculator.common.scientific import apply_function, parse_operand
from stepwise_calculator.storage.history import HistoryStore


ERROR_TEXT = "Error"
CLEAR_KEY = "C"


class CalculatorSession:
    """
    State behind one calculator screen.

    The evaluator stays synchronous and pure; the session threads each
    successful outcome into the history store on a worker thread.

    State:
        - input_text: expression being typed
        - result_text: last result, or "Error"
        - steps: rendered step trace of the last calculation
        - history: most recent records, newest first
        - scientific_mode: whether the scientific keypad is shown
    """

    def __init__(self, settings: Optional[CalculatorSettings] = None, store: Optional[HistoryStore] = None):
        self.settings = settings or CalculatorSettings()
        self.store = store or HistoryStore(db_path=self.settings.db_path)
        self.input_text: str = ""
        self.result_text: str = ""
        self.steps: List[str] = []
        self.history: List[HistoryRecord] = []
        self.scientific_mode: bool = False

    async def load_history(self) -> List[HistoryRecord]:
        """Load the most recent records from the store into the session."""
        self.history = await asyncio.to_thread(self.store.list_recent, self.settings.history_limit)
        return self.history

    def press(self, key: str) -> str:
        """
        Handle a keypad key other than "=".

        "C" clears input, result and steps; any other key is appended to the input.

        :param str key: Key label

        :return: The input buffer after the key press
        :rtype: str
        """
        if key == CLEAR_KEY:
            self.input_text = ""
            self.result_text = ""
            self.steps = []
        else:
            self.input_text += key
        return self.input_text

    def toggle_mode(self) -> bool:
        """Switch between the basic and the scientific keypad; return True when scientific."""
        self.scientific_mode = not self.scientific_mode
        return self.scientific_mode

    async def calculate(self, expression: Optional[str] = None) -> Optional[Evaluation]:
        """
        Evaluate the input buffer (or the given expression) and store it in the history.

        :param str expression: Expression to evaluate instead of the input buffer

        :return: The evaluation, or None when the expression is invalid
        :rtype: Optional[Evaluation]
        """
        if expression is not None:
            self.input_text = expression
        input_text = self.input_text

        try:
            evaluation = ExpressionParser.evaluate(input_text)
        except CalculatorError as exc:
            logger.warning(f"🧮❌ {exc.kind}: {exc}")
            self._show_error()
            return None

        self._show(evaluation)
        await self._record(input_text, evaluation.result_text)
        return evaluation

    async def apply_function(self, name: str) -> Optional[Evaluation]:
        """
        Apply a scientific function to the number in the input buffer.

        :param str name: Function name or keypad glyph (e.g. "sin", "√", "!")

        :return: The evaluation, or None when the function is unknown
        :rtype: Optional[Evaluation]
        """
        try:
            evaluation = apply_function(name, parse_operand(self.input_text))
        except CalculatorError as exc:
            logger.warning(f"🧮❌ {exc.kind}: {exc}")
            self._show_error()
            return None

        self._show(evaluation)
        await self._record(f"{name}({self.input_text})", evaluation.result_text)
        return evaluation

    async def clear_history(self) -> int:
        """Delete every stored calculation and empty the session history."""
        deleted = await asyncio.to_thread(self.store.clear_all)
        self.history = []
        return deleted

    def _show(self, evaluation: Evaluation) -> None:
        self.result_text = evaluation.result_text
        self.steps = evaluation.rendered_steps()

    def _show_error(self) -> None:
        self.result_text = ERROR_TEXT
        self.steps = []

    async def _record(self, input_text: str, result_text: str) -> None:
        """Persist a calculation; a storage failure is logged and the result stays displayed."""
        try:
            record = await asyncio.to_thread(self.store.insert, input_text, result_text)
        except (sqlite3.Error, OSError) as exc:
            logger.error(f"💾❌ Could not store {input_text!r}: {exc}")
            return

        self.history = [record, *self.history][: self.settings.history_limit]
        logger.info(f"🧮✅ {input_text} = {result_text}")
