# promptdoc/formatting/base.py
"""
The multi-syntax formatting contract.

A Formatter turns (props, rendered children text, syntax) into a string.
`format()` applies the shared pre-processing (whitespace handling, then
character and token limits) and dispatches to one `format_<syntax>` method.

`text` handed to a formatter has already been rendered for the active
syntax: text leaves under html/xml are escaped by the renderer. Formatters
only escape strings they take from props (captions, alt text, attributes).
"""
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple
import structlog

from promptdoc.config.settings import (
    DEFAULT_TRUNCATE_DIRECTION,
    DEFAULT_TRUNCATE_MARKER,
    RenderConfig,
    Syntax,
    TruncateDirection,
    WhiteSpace,
)
from promptdoc.exceptions import PropValidationError

from .text_utils import apply_limits, apply_whitespace, escape_html, escape_xml_text, to_json, to_yaml, xml_attrs

log = structlog.get_logger(__name__)

Props = Dict[str, Any]


@dataclass(frozen=True)
class WriterOptions:
    truncate_marker: str = DEFAULT_TRUNCATE_MARKER
    truncate_direction: TruncateDirection = DEFAULT_TRUNCATE_DIRECTION

    @classmethod
    def from_config(cls, config: Optional[RenderConfig]) -> "WriterOptions":
        if config is None:
            return cls()
        return cls(truncate_marker=config.truncate_marker, truncate_direction=config.truncate_direction)

    def merged_with(self, props: Mapping[str, Any]) -> "WriterOptions":
        # a node's writerOptions prop overrides the configured defaults.
        overrides = props.get("writerOptions")
        if not isinstance(overrides, Mapping):
            return self
        marker = overrides.get("truncateMarker", self.truncate_marker)
        direction = TruncateDirection.from_string(overrides.get("truncateDirection")) or self.truncate_direction
        return WriterOptions(truncate_marker=str(marker), truncate_direction=direction)


def int_prop(props: Mapping[str, Any], key: str, tag: str, default: Optional[int] = None) -> Optional[int]:
    value = props.get(key)
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise PropValidationError(tag, key, f"'{key}' must be an integer, got a boolean")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise PropValidationError(tag, key, f"'{key}' must be an integer, got {value!r}") from None


def bool_prop(props: Mapping[str, Any], key: str, default: bool = False) -> bool:
    value = props.get(key)
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return bool(value)


def str_prop(props: Mapping[str, Any], key: str, default: Optional[str] = None) -> Optional[str]:
    value = props.get(key)
    if value is None:
        return default
    return str(value)


class Formatter:
    """
    Base class for content formatters.

    Subclasses override the `format_<syntax>` methods they care about. The
    defaults emit the content unchanged for markdown/html/text, a wrapping
    element for xml, and a {"type": name, "content": text} record for
    json/yaml. `multimedia` falls back to markdown.
    """
    name: str = ""
    aliases: Tuple[str, ...] = ()
    default_whitespace: WhiteSpace = WhiteSpace.FILTER

    @property
    def xml_tag(self) -> str:
        return self.name

    async def prepare(self, props: Props, config: RenderConfig) -> Props:
        # hook for formatters that need external I/O before formatting.
        return props

    def select_children(self, props: Props, children: Sequence[Any], context: Mapping[str, Any]) -> Sequence[Any]:
        # hook for containers that render only some of their children.
        return children

    def format(self, props: Props, text: str, syntax: Syntax, options: Optional[WriterOptions] = None) -> str:
        writer = (options or WriterOptions()).merged_with(props)
        content = self.preprocess(props, text, writer, syntax)
        method = getattr(self, f"format_{syntax.value}")
        return method(props, content)

    def preprocess(self, props: Props, text: str, writer: WriterOptions, syntax: Optional[Syntax] = None) -> str:
        mode = WhiteSpace.from_string(props.get("whiteSpace")) or self.default_whitespace
        content = apply_whitespace(text, mode)
        marker = writer.truncate_marker
        # html/xml content arrives escaped: limits count entities as one
        # character and the marker is escaped like the text around it.
        markup = syntax in (Syntax.HTML, Syntax.XML)
        if syntax == Syntax.HTML:
            marker = escape_html(marker)
        elif syntax == Syntax.XML:
            marker = escape_xml_text(marker)
        return apply_limits(
            content,
            char_limit=int_prop(props, "charLimit", self.name),
            token_limit=int_prop(props, "tokenLimit", self.name),
            marker=marker,
            direction=writer.truncate_direction,
            entity_aware=markup,
        )

    def serialize(self, props: Props, text: str) -> Dict[str, Any]:
        key = str_prop(props, "name")
        if key:
            return {key: text}
        return {"type": self.name, "content": text}

    def format_markdown(self, props: Props, text: str) -> str:
        return text

    def format_text(self, props: Props, text: str) -> str:
        return self.format_markdown(props, text)

    def format_multimedia(self, props: Props, text: str) -> str:
        return self.format_markdown(props, text)

    def format_html(self, props: Props, text: str) -> str:
        return text

    def format_xml(self, props: Props, text: str) -> str:
        return f"<{self.xml_tag}{xml_attrs(type=str_prop(props, 'type'))}>{text}</{self.xml_tag}>"

    def format_json(self, props: Props, text: str) -> str:
        return to_json(self.serialize(props, text))

    def format_yaml(self, props: Props, text: str) -> str:
        return to_yaml(self.serialize(props, text))


def html_class_attr(props: Mapping[str, Any], base: Optional[str] = None) -> str:
    classes = " ".join(c for c in (base, str_prop(props, "className")) if c)
    return f' class="{escape_html(classes)}"' if classes else ""
