# promptdoc/formatting/examples.py
"""
Few-shot example blocks: `example-set` groups examples, `example-input` and
`example-output` hold the two sides of one worked example.
"""
from collections.abc import Mapping
from typing import Any, List, Sequence

from promptdoc.config.settings import WhiteSpace
from promptdoc.core.conditions import evaluate_condition
from promptdoc.core.loops import LOOP_PROP, expand_loop
from promptdoc.core.nodes import ComponentNode, TagNode, TextNode
from promptdoc.exceptions import PropValidationError
from promptdoc.util import get_language_hint

from .base import Formatter, Props, bool_prop, html_class_attr, int_prop, str_prop
from .text_utils import escape_html, escape_xml_text, xml_attrs


def _visible_children(children: Sequence[Any], context: Mapping) -> List[Any]:
    # direct children as they will render: loops expanded, false `if`s and blank text dropped.
    visible: List[Any] = []
    for child in children:
        if isinstance(child, (TextNode, str)):
            value = child.value if isinstance(child, TextNode) else child
            if value.strip():
                visible.append(child)
            continue
        scope = getattr(child, "context", None)
        if scope is None:
            scope = context
        if isinstance(child, (TagNode, ComponentNode)) and LOOP_PROP in child.props:
            expanded = expand_loop(child, scope)
            if expanded is not None:
                visible.extend(_visible_children(expanded.children, scope))
                continue
        props = getattr(child, "props", {})
        if "if" in props and not evaluate_condition(props["if"], scope):
            continue
        visible.append(child)
    return visible


class ExampleSetFormatter(Formatter):
    """
    A titled group of examples.

    title        heading above the examples
    description  short paragraph under the heading
    limit        render only the first N examples
    """
    name = "example-set"
    aliases = ("examples",)
    default_whitespace = WhiteSpace.PRE

    def select_children(self, props: Props, children: Sequence[Any], context: Mapping) -> Sequence[Any]:
        limit = int_prop(props, "limit", self.name)
        if limit is None:
            return children
        if limit < 0:
            raise PropValidationError(self.name, "limit", "'limit' must not be negative")
        return _visible_children(children, context)[:limit]

    def format_markdown(self, props: Props, text: str) -> str:
        parts = []
        title = str_prop(props, "title")
        if title:
            parts.append(f"## {title}")
        description = str_prop(props, "description")
        if description:
            parts.append(description)
        body = text.strip("\n")
        if body:
            parts.append(body)
        return "\n\n".join(parts) + "\n\n" if parts else ""

    def format_text(self, props: Props, text: str) -> str:
        parts = []
        title = str_prop(props, "title")
        if title:
            parts.append(f"EXAMPLE SET: {title}")
        description = str_prop(props, "description")
        if description:
            parts.append(description)
        body = text.strip("\n")
        if body:
            parts.append(body)
        return "\n\n".join(parts) + "\n\n" if parts else ""

    def format_html(self, props: Props, text: str) -> str:
        title = str_prop(props, "title")
        description = str_prop(props, "description")
        heading = f"<h3>{escape_html(title)}</h3>" if title else ""
        intro = f"<p>{escape_html(description)}</p>" if description else ""
        return f"<div{html_class_attr(props, base=self.name)}>{heading}{intro}{text}</div>\n"

    def format_xml(self, props: Props, text: str) -> str:
        description = str_prop(props, "description")
        intro = f"<description>{escape_xml_text(description)}</description>" if description else ""
        return f"<example-set{xml_attrs(title=str_prop(props, 'title'))}>{intro}{text}</example-set>"

    def serialize(self, props: Props, text: str):
        key = str_prop(props, "name")
        if key:
            return {key: text}
        record = {"type": self.name}
        for prop in ("title", "description"):
            value = str_prop(props, prop)
            if value:
                record[prop] = value
        record["content"] = text
        return record


class ExampleIOFormatter(Formatter):
    """
    One side of a worked example.

    label   caption before the content (defaults to Input / Output)
    inline  keep the content on the caption line instead of a fenced block
    format  language hint for the fenced block (json, py, ...)
    """
    side: str = ""
    default_whitespace = WhiteSpace.TRIM

    def _label(self, props: Props) -> str:
        return str_prop(props, "label") or self.side.capitalize()

    def _format(self, props: Props) -> str:
        return get_language_hint(str_prop(props, "format"))

    def format_markdown(self, props: Props, text: str) -> str:
        label = self._label(props)
        if bool_prop(props, "inline"):
            return f"**{label}:** `{text}`\n\n"
        return f"**{label}:**\n\n```{self._format(props)}\n{text}\n```\n\n"

    def format_text(self, props: Props, text: str) -> str:
        label = self._label(props).upper()
        if bool_prop(props, "inline"):
            return f"{label}: {text}\n\n"
        return f"{label}:\n{'-' * (len(label) + 1)}\n{text}\n\n"

    def format_html(self, props: Props, text: str) -> str:
        cls = html_class_attr(props, base=self.name)
        label = escape_html(self._label(props))
        if bool_prop(props, "inline"):
            return f"<div{cls}><strong>{label}:</strong> <code>{text}</code></div>\n"
        fmt = self._format(props)
        lang_class = f' class="language-{escape_html(fmt)}"' if fmt else ""
        return f"<div{cls}><h4>{label}</h4><pre><code{lang_class}>{text}</code></pre></div>\n"

    def format_xml(self, props: Props, text: str) -> str:
        attrs = xml_attrs(label=str_prop(props, "label"), format=self._format(props) or None)
        return f"<{self.name}{attrs}>{text}</{self.name}>"

    def serialize(self, props: Props, text: str):
        key = str_prop(props, "name")
        if key:
            return {key: text}
        record = {"type": self.name, "label": self._label(props)}
        if self._format(props):
            record["format"] = self._format(props)
        record["content"] = text
        return record


class ExampleInputFormatter(ExampleIOFormatter):
    name = "example-input"
    aliases = ("input",)
    side = "input"


class ExampleOutputFormatter(ExampleIOFormatter):
    name = "example-output"
    aliases = ("output",)
    side = "output"
