"""Parse and evaluate arithmetic expressions safely, recording each step."""
from collections.abc import Callable as ABCCallable
import math
import operator
import re
from typing import Callable, List, Tuple

from stepwise_calculator.common.errors import InvalidExpressionError, MalformedExpressionError
from stepwise_calculator.common.models import (
    Evaluation,
    NumberToken,
    OperatorToken,
    ParenToken,
    PostfixToken,
    Step,
    Token,
)


# Type alias for operator functions (taking two floats, returning a float)
OperatorFn: ABCCallable[[float, float], float] = Callable[[float, float], float]


def _divide(a: float, b: float) -> float:
    """IEEE-754 division: dividing by zero gives an infinity or NaN instead of raising."""
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        # Sign of the zero matters: 1 / -0.0 is -Infinity
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


# Mapping of operator symbols to (precedence, function)
OPERATORS: dict[str, Tuple[int, OperatorFn]] = {
    "+": (1, operator.add),
    "-": (1, operator.sub),
    "*": (2, operator.mul),
    "/": (2, _divide),
}

# Every character an expression may contain
ALLOWED_PATTERN = re.compile(r"[0-9+\-*/.() ]+")

# A number literal or a single operator / parenthesis
TOKEN_PATTERN = re.compile(r"\d+(?:\.\d+)?|[()+\-*/]")


class ExpressionParser:
    """
    Parse and evaluate arithmetic expressions safely.

    Design constraints:
        - No eval(), no dynamic code execution
        - Safe, deterministic computation
        - Every binary operation is recorded as a Step

    Algorithm:
        1. Validate the character set
        2. Tokenize into numbers, operators and parentheses
        3. Convert to Reverse Polish Notation (RPN) using Shunting-yard
        4. Evaluate RPN using a stack, recording steps as operators resolve

    Steps follow resolution order, not source order:
        - Infix expression: 2 + 3 * 4
        - RPN: 2 3 4 * +
        - Steps: "3 * 4 = 12", then "2 + 12 = 14"
    """

    @staticmethod
    def validate(expr: str) -> None:
        """
        Check that an expression only uses digits, '.', operators, parentheses and spaces.

        :param str expr: Arithmetic expression as a string

        :raises InvalidExpressionError: If the expression is empty or holds another character
        """
        if not ALLOWED_PATTERN.fullmatch(expr):
            raise InvalidExpressionError(f"Invalid expression: {expr!r}")

    @staticmethod
    def tokenize(expr: str) -> List[Token]:
        """
        Split an arithmetic expression into tokens.

        Characters that cannot start a token, such as spaces or a stray '.',
        are skipped. A leading '-' is an operator like any other.

        :param str expr: Arithmetic expression as a string

        :return: List of tokens in source order
        :rtype: List[Token]
        :raises InvalidExpressionError: If no token is found
        """
        tokens: List[Token] = []
        for lexeme in TOKEN_PATTERN.findall(expr):
            if lexeme in OPERATORS:
                tokens.append(OperatorToken(symbol=lexeme))
            elif lexeme in ("(", ")"):
                tokens.append(ParenToken(symbol=lexeme))
            else:
                tokens.append(NumberToken(value=float(lexeme)))

        if not tokens:
            raise InvalidExpressionError(f"No tokens in expression: {expr!r}")
        return tokens

    @staticmethod
    def to_rpn(tokens: List[Token]) -> List[PostfixToken]:
        """
        Convert a list of tokens into Reverse Polish Notation (RPN) using the Shunting-yard algorithm.

        Parenthesis mismatches never fail here: a ')' without its '(' empties
        the stack, and a '(' left open at the end is dropped. The resulting
        sequence may then fail during evaluation.

        :param List[Token] tokens: List of arithmetic tokens

        :return: List of tokens in RPN order
        :rtype: List[PostfixToken]
        """
        output: List[PostfixToken] = []
        stack: List[Token] = []

        for token in tokens:
            if isinstance(token, NumberToken):
                # Numbers are added directly to the output
                output.append(token)
            elif isinstance(token, OperatorToken):
                # Operator: pop operators from stack with higher or equal precedence
                prec = OPERATORS[token.symbol][0]
                while (
                    stack
                    and isinstance(stack[-1], OperatorToken)
                    and OPERATORS[stack[-1].symbol][0] >= prec
                ):
                    output.append(stack.pop())
                stack.append(token)
            elif token.symbol == "(":
                stack.append(token)
            else:
                while stack and not isinstance(stack[-1], ParenToken):
                    output.append(stack.pop())
                # Discard the matching '(' (silently skipped when the stack is empty)
                if stack:
                    stack.pop()

        # Append remaining operators in reverse order (stack top first), dropping unmatched '('
        output.extend(token for token in reversed(stack) if isinstance(token, OperatorToken))
        return output

    @staticmethod
    def evaluate_rpn(rpn: List[PostfixToken]) -> Evaluation:
        """
        Evaluate a postfix sequence, recording one Step per operator.

        :param List[PostfixToken] rpn: Tokens in RPN order

        :return: Final value and steps in resolution order
        :rtype: Evaluation
        :raises MalformedExpressionError: If an operator lacks operands or operands remain
        """
        stack: List[float] = []
        steps: List[Step] = []
        for token in rpn:
            if isinstance(token, NumberToken):
                stack.append(token.value)
                continue

            # Operator requires two operands
            if len(stack) < 2:
                raise MalformedExpressionError(
                    f"Invalid expression (not enough operands for {token.symbol!r})"
                )
            b: float = stack.pop()
            a: float = stack.pop()
            result: float = OPERATORS[token.symbol][1](a, b)
            steps.append(Step(left=a, operator=token.symbol, right=b, result=result))
            stack.append(result)

        if len(stack) != 1:
            raise MalformedExpressionError(
                f"Invalid expression ({len(stack)} operands left instead of 1)"
            )

        return Evaluation(value=stack[0], steps=steps)

    @staticmethod
    def evaluate(expr: str) -> Evaluation:
        """
        Evaluate an arithmetic expression safely.

        :param str expr: Arithmetic expression string

        :return: Computed result with its step trace
        :rtype: Evaluation
        :raises InvalidExpressionError: If the expression has bad characters or no tokens
        :raises MalformedExpressionError: If the expression cannot be reduced to one value
        """
        ExpressionParser.validate(expr)
        tokens: List[Token] = ExpressionParser.tokenize(expr)
        rpn: List[PostfixToken] = ExpressionParser.to_rpn(tokens)
        return ExpressionParser.evaluate_rpn(rpn)
