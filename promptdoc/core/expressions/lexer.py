"""
Tokenizer for template expressions.

Splits an expression string into:
- literals (numbers, single- or double-quoted strings)
- keywords (true, false, null, undefined)
- identifiers
- operators (== != === !== < > <= >= && || ! -)
- symbols (parentheses, brackets, braces, comma, dot, colon)
Whitespace is skipped; any other character is a syntax error.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List

from promptdoc.exceptions import ExpressionSyntaxError


@dataclass(frozen=True)
class Token:
    """
    One lexical token.

    Attributes:
        type: NUMBER, STRING, KEYWORD, IDENTIFIER, OPERATOR, SYMBOL or EOF
        value: token text (unescaped contents for STRING)
        position: offset in the source string
    """
    type: str
    value: str
    position: int

    def __repr__(self):
        return f"Token({self.type}, '{self.value}', pos={self.position})"


_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "\\": "\\", "'": "'", '"': '"'}


def _unescape(body: str) -> str:
    return re.sub(r"\\(.)", lambda m: _ESCAPES.get(m.group(1), m.group(1)), body)


class ExpressionLexer:
    """Regex-table lexer; the first matching pattern wins."""

    # (regex_pattern, token_type, ignore_flag)
    TOKEN_SPECS = [
        (r"\s+", "WHITESPACE", True),
        (r"\d+(?:\.\d+)?", "NUMBER", False),
        (r"'(?:[^'\\]|\\.)*'|\"(?:[^\"\\]|\\.)*\"", "STRING", False),
        # longest operators first
        (r"===|!==|==|!=|<=|>=|&&|\|\||<|>|!|-", "OPERATOR", False),
        (r"[()\[\]{},.:]", "SYMBOL", False),
        (r"[A-Za-z_$][\w$]*", "IDENTIFIER", False),
        (r".", "UNKNOWN", False),
    ]

    KEYWORDS = {"true", "false", "null", "undefined"}

    def __init__(self):
        self._compiled_patterns = [
            (re.compile(pattern, re.DOTALL), token_type, ignore)
            for pattern, token_type, ignore in self.TOKEN_SPECS
        ]

    def tokenize(self, text: str) -> List[Token]:
        """
        Splits `text` into tokens, always ending with an EOF token.

        Raises:
            ExpressionSyntaxError: on a character no pattern accepts
        """
        tokens: List[Token] = []
        position = 0

        while position < len(text):
            for pattern, token_type, ignore in self._compiled_patterns:
                match = pattern.match(text, position)
                if not match:
                    continue
                value = match.group(0)
                if not ignore:
                    if token_type == "UNKNOWN":
                        raise ExpressionSyntaxError(f"unexpected character '{value}'", position)
                    if token_type == "STRING":
                        value = _unescape(value[1:-1])
                    elif token_type == "IDENTIFIER" and value in self.KEYWORDS:
                        token_type = "KEYWORD"
                    tokens.append(Token(type=token_type, value=value, position=position))
                position = match.end()
                break

        tokens.append(Token(type="EOF", value="", position=position))
        return tokens
