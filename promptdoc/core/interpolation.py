# promptdoc/core/interpolation.py
"""
Placeholder substitution for text leaves and string props.

Two forms are recognised in one left-to-right pass:
  {{path}}  - bare name, dotted path (a.b.c) or loop.<field>
  {name}    - single identifier
A placeholder that does not resolve is left verbatim. Substituted values are
never re-scanned, so a value containing braces cannot trigger another round.
"""
import json
import re
from collections.abc import Mapping
from typing import Any, Optional
import structlog

from promptdoc.core.context import EvaluationContext

log = structlog.get_logger(__name__)

PLACEHOLDER_RE = re.compile(r"\{\{\s*([^{}]*?)\s*\}\}|\{([A-Za-z_$][\w$]*)\}")
PATH_RE = re.compile(r"^[A-Za-z_$][\w$]*(?:\.[\w$]+)*$")

def stringify_value(value: Any) -> Optional[str]:
    # None means "leave the placeholder as it was".
    if value is None or callable(value):
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (Mapping, list, tuple)):
        try:
            return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)
        except (TypeError, ValueError):
            return str(value)
    return str(value)

def interpolate(text: str, context: Optional[Mapping] = None) -> str:
    if not text or "{" not in text:
        return text
    scope = EvaluationContext.coerce(context)

    def _replace(match: "re.Match[str]") -> str:
        original = match.group(0)
        path_text = match.group(1)
        if path_text is not None:
            if not PATH_RE.match(path_text):
                return original
            segments = path_text.split(".")
        else:
            segments = [match.group(2)]
        try:
            value = scope.lookup_path(segments)
        except KeyError:
            log.debug("placeholder_unresolved", placeholder=original)
            return original
        rendered = stringify_value(value)
        return original if rendered is None else rendered

    return PLACEHOLDER_RE.sub(_replace, text)

def interpolate_props(props: Mapping, context: Optional[Mapping] = None) -> dict:
    # string-valued props only; nested structures are passed through untouched.
    return {
        key: interpolate(value, context) if isinstance(value, str) else value
        for key, value in props.items()
    }
