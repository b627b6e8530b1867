# promptdoc/formatting/text_utils.py
"""
Cross-cutting text helpers shared by every formatter: whitespace handling,
length limiting, per-syntax escaping and structural encoders.
"""
import json
import re
from typing import Any, Optional, Sequence
import yaml
import structlog

from promptdoc.config.settings import (
    DEFAULT_TRUNCATE_MARKER,
    TruncateDirection,
    WhiteSpace,
)

log = structlog.get_logger(__name__)

_WHITESPACE_RUN_RE = re.compile(r"\s+")
# one visible character: a whole character reference or any single character
_CHARACTER_UNIT_RE = re.compile(r"&(?:#[0-9]+|#[xX][0-9a-fA-F]+|[A-Za-z][A-Za-z0-9]*);|.", re.DOTALL)

def apply_whitespace(text: str, mode: WhiteSpace) -> str:
    if mode == WhiteSpace.FILTER:
        return _WHITESPACE_RUN_RE.sub(" ", text.strip())
    if mode == WhiteSpace.TRIM:
        return text.strip()
    return text

def _character_units(text: str, entity_aware: bool) -> Sequence[str]:
    return _CHARACTER_UNIT_RE.findall(text) if entity_aware else text

def truncate_chars(
    text: str,
    char_limit: int,
    marker: str = DEFAULT_TRUNCATE_MARKER,
    direction: TruncateDirection = TruncateDirection.END,
    entity_aware: bool = False,
) -> str:
    """
    Cuts `text` to at most `char_limit` characters including `marker`.

    With `entity_aware`, escaped html/xml text is measured in visible
    characters: `&amp;` counts as one and is never split.
    """
    units = _character_units(text, entity_aware)
    if len(units) <= char_limit:
        return text
    marker_units = _character_units(marker, entity_aware)
    available = char_limit - len(marker_units)
    if available <= 0:
        return "".join(marker_units[:char_limit])
    if direction == TruncateDirection.START:
        return marker + "".join(units[len(units) - available:])
    if direction == TruncateDirection.MIDDLE:
        head = available // 2
        tail = available - head
        return "".join(units[:head]) + marker + "".join(units[len(units) - tail:])
    return "".join(units[:available]) + marker

def truncate_tokens(text: str, token_limit: int, marker: str = DEFAULT_TRUNCATE_MARKER) -> str:
    # whitespace-delimited tokens; the marker is appended, never counted.
    tokens = text.split()
    if len(tokens) <= token_limit:
        return text
    return " ".join(tokens[:token_limit]) + marker

def apply_limits(
    text: str,
    char_limit: Optional[int] = None,
    token_limit: Optional[int] = None,
    marker: str = DEFAULT_TRUNCATE_MARKER,
    direction: TruncateDirection = TruncateDirection.END,
    entity_aware: bool = False,
) -> str:
    # character limit first, then token limit.
    result = text
    if char_limit:
        result = truncate_chars(result, char_limit, marker, direction, entity_aware)
    if token_limit:
        result = truncate_tokens(result, token_limit, marker)
    if result is not text:
        log.debug("content_truncated", original_length=len(text), truncated_length=len(result))
    return result

def escape_html(text: str) -> str:
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&#39;")
    )

def escape_xml_text(text: str) -> str:
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&#39;")
    )

def escape_xml_attr(text: str) -> str:
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&apos;")
    )

def to_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)

def to_compact_json(data: Any) -> str:
    # single-line json for values shown inline in prose formats.
    return json.dumps(data, ensure_ascii=False, default=str)

def to_yaml(data: Any) -> str:
    return yaml.safe_dump(data, sort_keys=False, allow_unicode=True, default_flow_style=False).rstrip("\n")

def xml_attrs(**attrs: Any) -> str:
    # ' key="value"' pairs for the non-None attributes, attribute-escaped.
    parts = []
    for key, value in attrs.items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        parts.append(f' {key.replace("_", "-")}="{escape_xml_attr(str(value))}"')
    return "".join(parts)
