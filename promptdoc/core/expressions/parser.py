"""
Recursive-descent parser for template expressions.

Grammar:
expression → or_expression
or_expression  → and_expression ("||" and_expression)*
and_expression → not_expression ("&&" not_expression)*
not_expression → "!" not_expression | comparison
comparison     → unary (COMPARE_OP unary)?
unary          → "-" unary | primary
primary        → NUMBER | STRING | KEYWORD | path
               | "(" expression ")" | list_literal | object_literal
path           → IDENTIFIER ("." IDENTIFIER | "[" expression "]")*
list_literal   → "[" (expression ("," expression)* ","?)? "]"
object_literal → "{" (key ":" expression ("," key ":" expression)* ","?)? "}"
key            → IDENTIFIER | STRING | KEYWORD
"""

from __future__ import annotations

from functools import lru_cache
from typing import List, Tuple

from promptdoc.exceptions import ExpressionSyntaxError

from .lexer import ExpressionLexer, Token
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
    PathSegment,
)

COMPARE_OPERATORS = {"==": "==", "===": "==", "!=": "!=", "!==": "!=", "<": "<", ">": ">", "<=": "<=", ">=": ">="}
KEYWORD_VALUES = {"true": True, "false": False, "null": None, "undefined": None}
# Bound on bracket and parenthesis nesting; keeps parse and evaluation depth
# well inside the interpreter recursion limit.
MAX_NESTING_DEPTH = 32


class ExpressionParser:
    """Turns an expression string into an AST, honouring operator precedence."""

    def __init__(self):
        self.lexer = ExpressionLexer()
        self._tokens: List[Token] = []
        self._position = 0
        self._depth = 0

    def parse(self, source: str) -> Expression:
        """
        Parses `source` into an AST.

        Raises:
            ExpressionSyntaxError: on empty input, bad characters or bad structure
        """
        self._tokens = self.lexer.tokenize(source)
        self._position = 0
        self._depth = 0

        if self._is_at_end():
            raise ExpressionSyntaxError("empty expression", 0)

        result = self._parse_or_expression()

        if not self._is_at_end():
            current = self._current_token()
            raise ExpressionSyntaxError(f"unexpected token '{current.value}'", current.position)
        return result

    def _parse_or_expression(self) -> Expression:
        left = self._parse_and_expression()
        while self._match("OPERATOR", "||"):
            right = self._parse_and_expression()
            left = LogicalExpression(operator=ExpressionType.OR, left=left, right=right)
        return left

    def _parse_and_expression(self) -> Expression:
        left = self._parse_not_expression()
        while self._match("OPERATOR", "&&"):
            right = self._parse_not_expression()
            left = LogicalExpression(operator=ExpressionType.AND, left=left, right=right)
        return left

    def _parse_not_expression(self) -> Expression:
        count = 0
        while self._match("OPERATOR", "!"):
            count += 1
        operand = self._parse_comparison()
        # "!!!x" is "!x" and "!!!!x" is "!!x"
        if count:
            operand = NotExpression(operand=operand)
            if count % 2 == 0:
                operand = NotExpression(operand=operand)
        return operand

    def _parse_comparison(self) -> Expression:
        left = self._parse_unary()
        current = self._current_token()
        if current.type == "OPERATOR" and current.value in COMPARE_OPERATORS:
            self._advance()
            right = self._parse_unary()
            return CompareExpression(operator=COMPARE_OPERATORS[current.value], left=left, right=right)
        return left

    def _parse_unary(self) -> Expression:
        count = 0
        while self._match("OPERATOR", "-"):
            count += 1
        operand = self._parse_primary()
        # an even run still negates twice so non-numbers keep failing
        if count:
            operand = NegateExpression(operand=operand)
            if count % 2 == 0:
                operand = NegateExpression(operand=operand)
        return operand

    def _parse_primary(self) -> Expression:
        token = self._current_token()

        if token.type == "NUMBER":
            self._advance()
            return Literal(float(token.value) if "." in token.value else int(token.value))
        if token.type == "STRING":
            self._advance()
            return Literal(token.value)
        if token.type == "KEYWORD":
            self._advance()
            return Literal(KEYWORD_VALUES[token.value])
        if token.type == "IDENTIFIER":
            return self._parse_path()
        if self._match("SYMBOL", "("):
            expr = self._parse_nested()
            self._expect("SYMBOL", ")", "expected ')' after grouped expression")
            return expr
        if self._match("SYMBOL", "["):
            return self._parse_list_literal()
        if self._match("SYMBOL", "{"):
            return self._parse_object_literal()

        if token.type == "EOF":
            raise ExpressionSyntaxError("unexpected end of expression", token.position)
        raise ExpressionSyntaxError(f"unexpected token '{token.value}'", token.position)

    def _parse_nested(self) -> Expression:
        self._depth += 1
        try:
            if self._depth > MAX_NESTING_DEPTH:
                raise ExpressionSyntaxError(
                    f"expression nested deeper than {MAX_NESTING_DEPTH} levels", self._current_token().position
                )
            return self._parse_or_expression()
        finally:
            self._depth -= 1

    def _parse_path(self) -> PathExpression:
        root = self._advance().value
        segments: List[PathSegment] = []
        while True:
            if self._match("SYMBOL", "."):
                name = self._current_token()
                if name.type not in ("IDENTIFIER", "KEYWORD", "NUMBER"):
                    raise ExpressionSyntaxError("expected property name after '.'", name.position)
                self._advance()
                segments.append(name.value)
            elif self._match("SYMBOL", "["):
                segments.append(self._parse_nested())
                self._expect("SYMBOL", "]", "expected ']' after index expression")
            else:
                break
        return PathExpression(root=root, segments=tuple(segments))

    def _parse_list_literal(self) -> ListExpression:
        items: List[Expression] = []
        while not self._match("SYMBOL", "]"):
            items.append(self._parse_nested())
            if self._match("SYMBOL", ","):
                continue
            self._expect("SYMBOL", "]", "expected ',' or ']' in list literal")
            break
        return ListExpression(items=tuple(items))

    def _parse_object_literal(self) -> ObjectExpression:
        entries: List[Tuple[str, Expression]] = []
        while not self._match("SYMBOL", "}"):
            key = self._current_token()
            if key.type not in ("IDENTIFIER", "STRING", "KEYWORD"):
                raise ExpressionSyntaxError("expected key in object literal", key.position)
            self._advance()
            self._expect("SYMBOL", ":", "expected ':' after object key")
            entries.append((key.value, self._parse_nested()))
            if self._match("SYMBOL", ","):
                continue
            self._expect("SYMBOL", "}", "expected ',' or '}' in object literal")
            break
        return ObjectExpression(entries=tuple(entries))

    # token helpers

    def _current_token(self) -> Token:
        if self._position >= len(self._tokens):
            return Token(type="EOF", value="", position=len(self._tokens))
        return self._tokens[self._position]

    def _is_at_end(self) -> bool:
        return self._current_token().type == "EOF"

    def _advance(self) -> Token:
        token = self._current_token()
        if not self._is_at_end():
            self._position += 1
        return token

    def _match(self, token_type: str, value: str) -> bool:
        token = self._current_token()
        if token.type == token_type and token.value == value:
            self._advance()
            return True
        return False

    def _expect(self, token_type: str, value: str, message: str) -> None:
        if not self._match(token_type, value):
            raise ExpressionSyntaxError(message, self._current_token().position)


@lru_cache(maxsize=512)
def parse_expression(source: str) -> Expression:
    # ASTs are immutable, so one parse per distinct source string is enough.
    return ExpressionParser().parse(source)
