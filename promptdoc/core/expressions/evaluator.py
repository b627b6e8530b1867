"""
Evaluator for template expressions.

Walks an expression AST against an EvaluationContext and returns the
resulting value. Failures are raised as ExpressionError for the caller to
recover from; nothing here logs or swallows errors.
"""

from __future__ import annotations

import operator
from collections.abc import Mapping
from typing import Any, Callable, Dict, Optional, cast

from promptdoc.core.context import EvaluationContext, resolve_segment
from promptdoc.exceptions import ExpressionError

from .model import (
    CompareExpression,
    Expression,
    ExpressionType,
    ListExpression,
    Literal,
    LogicalExpression,
    NegateExpression,
    NotExpression,
    ObjectExpression,
    PathExpression,
)

_COMPARATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    ">": operator.gt,
    "<=": operator.le,
    ">=": operator.ge,
}


class ExpressionEvaluator:
    """Evaluates expression ASTs in one evaluation context."""

    def __init__(self, context: Optional[Mapping] = None):
        self.context = EvaluationContext.coerce(context)

    def evaluate(self, expression: Expression) -> Any:
        """
        Returns the value of `expression`.

        Raises:
            ExpressionError: unknown identifier, unresolvable property,
                or an ordering comparison between incompatible values
        """
        expression_type = expression.get_type()

        if expression_type == ExpressionType.LITERAL:
            return cast(Literal, expression).value
        elif expression_type == ExpressionType.PATH:
            return self._evaluate_path(cast(PathExpression, expression))
        elif expression_type == ExpressionType.LIST:
            return [self.evaluate(item) for item in cast(ListExpression, expression).items]
        elif expression_type == ExpressionType.OBJECT:
            return {key: self.evaluate(value) for key, value in cast(ObjectExpression, expression).entries}
        elif expression_type == ExpressionType.NOT:
            return not self.evaluate(cast(NotExpression, expression).operand)
        elif expression_type == ExpressionType.NEGATE:
            return self._evaluate_negate(cast(NegateExpression, expression))
        elif expression_type == ExpressionType.COMPARE:
            return self._evaluate_compare(cast(CompareExpression, expression))
        elif expression_type in (ExpressionType.AND, ExpressionType.OR):
            return self._evaluate_logical(cast(LogicalExpression, expression))
        raise ExpressionError(f"unknown expression type: {expression_type}")

    def _evaluate_path(self, expression: PathExpression) -> Any:
        try:
            value = self.context[expression.root]
        except KeyError:
            raise ExpressionError(f"unknown identifier '{expression.root}'") from None

        for segment in expression.segments:
            key = self.evaluate(segment) if isinstance(segment, Expression) else segment
            if isinstance(key, float) and key.is_integer():
                key = int(key)
            try:
                value = resolve_segment(value, key)
            except KeyError:
                raise ExpressionError(f"cannot resolve '{key}' in '{expression}'") from None
        return value

    def _evaluate_negate(self, expression: NegateExpression) -> Any:
        value = self.evaluate(expression.operand)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ExpressionError(f"cannot negate non-numeric value {value!r}")
        return -value

    def _evaluate_compare(self, expression: CompareExpression) -> bool:
        left = self.evaluate(expression.left)
        right = self.evaluate(expression.right)
        try:
            return bool(_COMPARATORS[expression.operator](left, right))
        except TypeError:
            raise ExpressionError(
                f"cannot compare {type(left).__name__} {expression.operator} {type(right).__name__}"
            ) from None

    def _evaluate_logical(self, expression: LogicalExpression) -> Any:
        # "a || b || c" nests to the left; walk that spine instead of recursing
        # so long chains stay flat. Short-circuits and returns the deciding operand.
        operands = []
        node: Expression = expression
        while isinstance(node, LogicalExpression) and node.operator == expression.operator:
            operands.append(node.right)
            node = node.left
        operands.append(node)
        operands.reverse()

        value = None
        for operand in operands:
            value = self.evaluate(operand)
            if expression.operator == ExpressionType.AND and not value:
                return value
            if expression.operator == ExpressionType.OR and value:
                return value
        return value


def evaluate_expression(source: str, context: Optional[Mapping] = None) -> Any:
    """
    Parses and evaluates `source` in `context`.

    Raises:
        ExpressionSyntaxError: when `source` does not parse
        ExpressionError: when evaluation fails
    """
    from .parser import parse_expression

    try:
        return ExpressionEvaluator(context).evaluate(parse_expression(source))
    except RecursionError:
        raise ExpressionError(f"expression too deeply nested: {source[:40]!r}") from None
