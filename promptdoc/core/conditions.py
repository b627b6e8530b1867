# promptdoc/core/conditions.py
"""
Decides whether a node carrying an `if` prop renders.
"""
from collections.abc import Mapping
from typing import Any, Optional
import structlog

from promptdoc.core.context import EvaluationContext
from promptdoc.core.expressions import evaluate_expression
from promptdoc.exceptions import ExpressionError

log = structlog.get_logger(__name__)

def evaluate_condition(condition: Any, context: Optional[Mapping] = None) -> bool:
    """
    Evaluates an `if` condition: a bool is returned as is, a string is
    evaluated as an expression, a callable is invoked with the context.

    Never raises: any failure is logged as a warning and counts as False,
    which suppresses the node but not its siblings.
    """
    if isinstance(condition, bool):
        return condition

    scope = EvaluationContext.coerce(context)

    if isinstance(condition, str):
        try:
            return bool(evaluate_expression(condition, scope))
        except ExpressionError as e:
            log.warning("condition_evaluation_failed", condition=condition, error=str(e))
            return False

    if callable(condition):
        try:
            return bool(condition(scope))
        except Exception as e:
            log.warning("condition_predicate_failed", predicate=getattr(condition, "__name__", repr(condition)), error=str(e))
            return False

    return bool(condition)
