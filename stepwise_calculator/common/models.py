"""Pydantic models shared by the evaluator, the history store and the session."""
from datetime import datetime
from typing import List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from stepwise_calculator.common.formatting import format_number


OperatorSymbol = Literal["+", "-", "*", "/"]


class NumberToken(BaseModel):
    """Numeric literal produced by the tokenizer."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["number"] = "number"
    value: float = Field(..., description="Parsed value of the literal")

    def __str__(self) -> str:
        return format_number(self.value)


class OperatorToken(BaseModel):
    """Binary operator produced by the tokenizer."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["operator"] = "operator"
    symbol: OperatorSymbol = Field(..., description="Operator symbol")

    def __str__(self) -> str:
        return self.symbol


class ParenToken(BaseModel):
    """Opening or closing parenthesis."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["paren"] = "paren"
    symbol: Literal["(", ")"] = Field(..., description="Parenthesis character")

    def __str__(self) -> str:
        return self.symbol


Token = Union[NumberToken, OperatorToken, ParenToken]
PostfixToken = Union[NumberToken, OperatorToken]


class Step(BaseModel):
    """One resolved binary operation, e.g. ``3 * 4 = 12``."""

    model_config = ConfigDict(frozen=True)

    left: float = Field(..., description="Left operand")
    operator: OperatorSymbol = Field(..., description="Applied operator")
    right: float = Field(..., description="Right operand")
    result: float = Field(..., description="Value of the operation")

    def __str__(self) -> str:
        return (
            f"{format_number(self.left)} {self.operator} "
            f"{format_number(self.right)} = {format_number(self.result)}"
        )


class FunctionStep(BaseModel):
    """One applied scientific function, e.g. ``sqrt(9) = 3``."""

    model_config = ConfigDict(frozen=True)

    function: str = Field(..., description="Function name as entered")
    operand: float = Field(..., description="Operand the function was applied to")
    result: float = Field(..., description="Value of the function")

    def __str__(self) -> str:
        return f"{self.function}({format_number(self.operand)}) = {format_number(self.result)}"


class Evaluation(BaseModel):
    """Successful outcome of an evaluation: the value and the ordered step trace."""

    model_config = ConfigDict(frozen=True)

    value: float = Field(..., description="Final numeric result")
    steps: List[Union[Step, FunctionStep]] = Field(
        default_factory=list, description="Operations in the order they were resolved"
    )

    @property
    def result_text(self) -> str:
        """Display text of the value."""
        return format_number(self.value)

    def rendered_steps(self) -> List[str]:
        """Steps rendered for display."""
        return [str(step) for step in self.steps]


class HistoryRecord(BaseModel):
    """Persisted calculation."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., ge=1, description="Autoincremented row id")
    input_text: str = Field(..., description="Expression or function call as entered")
    result_text: str = Field(..., description="Displayed result")
    created_at: datetime = Field(..., description="Insertion timestamp (UTC)")
