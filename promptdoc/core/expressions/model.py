"""
AST node types for template expressions.

All nodes are frozen dataclasses so parsed trees can be cached and shared
between renders.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Tuple, Union


class ExpressionType(Enum):
    LITERAL = "literal"
    PATH = "path"
    LIST = "list"
    OBJECT = "object"
    NOT = "not"
    NEGATE = "negate"
    COMPARE = "compare"
    AND = "and"
    OR = "or"


@dataclass(frozen=True)
class Expression(ABC):
    """Base class for every expression node."""

    @abstractmethod
    def get_type(self) -> ExpressionType:
        pass

    def __str__(self) -> str:
        return self._to_string()

    @abstractmethod
    def _to_string(self) -> str:
        pass


@dataclass(frozen=True)
class Literal(Expression):
    value: Any

    def get_type(self) -> ExpressionType:
        return ExpressionType.LITERAL

    def _to_string(self) -> str:
        if self.value is None:
            return "null"
        if isinstance(self.value, bool):
            return "true" if self.value else "false"
        return repr(self.value)


PathSegment = Union[str, Expression]


@dataclass(frozen=True)
class PathExpression(Expression):
    """
    Identifier lookup followed by property access: `a.b[0].c`.

    `segments` holds plain names for dot access and sub-expressions for
    bracket access.
    """
    root: str
    segments: Tuple[PathSegment, ...] = ()

    def get_type(self) -> ExpressionType:
        return ExpressionType.PATH

    def _to_string(self) -> str:
        out = self.root
        for segment in self.segments:
            out += f"[{segment}]" if isinstance(segment, Expression) else f".{segment}"
        return out


@dataclass(frozen=True)
class ListExpression(Expression):
    items: Tuple[Expression, ...] = ()

    def get_type(self) -> ExpressionType:
        return ExpressionType.LIST

    def _to_string(self) -> str:
        return "[" + ", ".join(str(item) for item in self.items) + "]"


@dataclass(frozen=True)
class ObjectExpression(Expression):
    entries: Tuple[Tuple[str, Expression], ...] = ()

    def get_type(self) -> ExpressionType:
        return ExpressionType.OBJECT

    def _to_string(self) -> str:
        return "{" + ", ".join(f"{key!r}: {value}" for key, value in self.entries) + "}"


@dataclass(frozen=True)
class NotExpression(Expression):
    operand: Expression

    def get_type(self) -> ExpressionType:
        return ExpressionType.NOT

    def _to_string(self) -> str:
        return f"!{self.operand}"


@dataclass(frozen=True)
class NegateExpression(Expression):
    operand: Expression

    def get_type(self) -> ExpressionType:
        return ExpressionType.NEGATE

    def _to_string(self) -> str:
        return f"-{self.operand}"


@dataclass(frozen=True)
class CompareExpression(Expression):
    # operator is normalized: === -> ==, !== -> !=
    operator: str
    left: Expression
    right: Expression

    def get_type(self) -> ExpressionType:
        return ExpressionType.COMPARE

    def _to_string(self) -> str:
        return f"({self.left} {self.operator} {self.right})"


@dataclass(frozen=True)
class LogicalExpression(Expression):
    operator: ExpressionType  # AND or OR
    left: Expression
    right: Expression

    def get_type(self) -> ExpressionType:
        return self.operator

    def _to_string(self) -> str:
        symbol = "&&" if self.operator == ExpressionType.AND else "||"
        return f"({self.left} {symbol} {self.right})"
