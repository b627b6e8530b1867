# promptdoc/formatting/inline.py
"""Inline formatters: plain text spans, emphasis styles and line breaks."""
from typing import Optional

from promptdoc.config.settings import WhiteSpace

from .base import Formatter, Props, html_class_attr, int_prop
from .text_utils import to_json, to_yaml, xml_attrs


class TextFormatter(Formatter):
    name = "text"
    aliases = ("span",)
    default_whitespace = WhiteSpace.PRE


class InlineStyleFormatter(Formatter):
    """Emphasis wrapper: markdown delimiters, an html element, an xml element."""
    markdown_open: str = ""
    markdown_close: Optional[str] = None
    html_tag: str = "span"

    def format_markdown(self, props: Props, text: str) -> str:
        if not text:
            return ""
        close = self.markdown_open if self.markdown_close is None else self.markdown_close
        return f"{self.markdown_open}{text}{close}"

    def format_text(self, props: Props, text: str) -> str:
        return text

    def format_html(self, props: Props, text: str) -> str:
        return f"<{self.html_tag}{html_class_attr(props)}>{text}</{self.html_tag}>"


class BoldFormatter(InlineStyleFormatter):
    name = "bold"
    aliases = ("b",)
    markdown_open = "**"
    html_tag = "b"

    def format_text(self, props: Props, text: str) -> str:
        # no markup in plain text; capitals carry the emphasis.
        return text.upper()


class ItalicFormatter(InlineStyleFormatter):
    name = "italic"
    aliases = ("i",)
    markdown_open = "*"
    html_tag = "em"


class UnderlineFormatter(InlineStyleFormatter):
    name = "underline"
    aliases = ("u",)
    markdown_open = "<u>"
    markdown_close = "</u>"
    html_tag = "u"


class StrikethroughFormatter(InlineStyleFormatter):
    name = "strikethrough"
    aliases = ("s", "strike")
    markdown_open = "~~"
    html_tag = "del"


class NewlineFormatter(Formatter):
    name = "newline"
    aliases = ("br",)
    default_whitespace = WhiteSpace.PRE

    def _count(self, props: Props) -> int:
        return max(0, int_prop(props, "count", self.name, default=1) or 0)

    def format_markdown(self, props: Props, text: str) -> str:
        return "\n" * self._count(props)

    def format_html(self, props: Props, text: str) -> str:
        return "<br />" * self._count(props)

    def format_xml(self, props: Props, text: str) -> str:
        return f"<newline{xml_attrs(count=self._count(props))} />"

    def format_json(self, props: Props, text: str) -> str:
        return to_json({"type": "newline", "count": self._count(props)})

    def format_yaml(self, props: Props, text: str) -> str:
        return to_yaml({"type": "newline", "count": self._count(props)})


class InlineFormatter(InlineStyleFormatter):
    """Run-in text: whitespace collapses to single spaces, html wraps it in a span."""
    name = "inline"
    default_whitespace = WhiteSpace.FILTER
