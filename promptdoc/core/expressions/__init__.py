# promptdoc/core/expressions/__init__.py
"""
The small expression language used by `if` conditions and loop sources.

Supports literals, identifier and dotted/bracketed property lookup, list and
object literals, comparisons and boolean connectives. There are no calls,
assignments or statements: expressions are parsed into an AST and walked
against an EvaluationContext, never handed to Python's own evaluator.
"""
from .evaluator import ExpressionEvaluator, evaluate_expression
from .lexer import ExpressionLexer, Token
from .parser import ExpressionParser, parse_expression

__all__ = [
    "ExpressionEvaluator",
    "ExpressionLexer",
    "ExpressionParser",
    "Token",
    "evaluate_expression",
    "parse_expression",
]
