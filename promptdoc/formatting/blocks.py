# promptdoc/formatting/blocks.py
"""
Block formatters: paragraphs, headers, lists, code, captioned paragraphs and
the intention blocks built on them, plus the document/fragment containers.
"""
import itertools
import re
from typing import Optional

from promptdoc.config.settings import WhiteSpace
from promptdoc.exceptions import PropValidationError
from promptdoc.util import get_language_hint

from .base import Formatter, Props, bool_prop, html_class_attr, int_prop, str_prop
from .text_utils import escape_html, xml_attrs

_LIST_LINE_RE = re.compile(r"^- ", re.MULTILINE)
_XML_NAME_RE = re.compile(r"[^a-z0-9]+")

CAPTION_STYLES = ("header", "bold", "plain", "hidden")
CAPTION_ENDINGS = ("colon", "newline", "colon-newline", "none")


def _indent_continuation(text: str, prefix: str = "  ") -> str:
    # keeps nested block content under its list bullet.
    lines = text.split("\n")
    return "\n".join([lines[0]] + [prefix + line if line else line for line in lines[1:]])


def _xml_name(caption: str) -> str:
    slug = _XML_NAME_RE.sub("-", caption.lower()).strip("-")
    return slug or "section"


class ParagraphFormatter(Formatter):
    name = "paragraph"
    aliases = ("p",)

    def format_markdown(self, props: Props, text: str) -> str:
        if not text:
            return ""
        lead = "\n" if bool_prop(props, "blankLine") else ""
        return f"{lead}{text}\n\n"

    def format_html(self, props: Props, text: str) -> str:
        return f"<p{html_class_attr(props)}>{text}</p>\n"

    def format_xml(self, props: Props, text: str) -> str:
        return f"<paragraph>{text}</paragraph>"


class HeaderFormatter(Formatter):
    name = "header"
    aliases = ("h",)

    def _level(self, props: Props) -> int:
        level = int_prop(props, "level", self.name, default=1)
        return min(6, max(1, level))

    def format_markdown(self, props: Props, text: str) -> str:
        return f"{'#' * self._level(props)} {text}\n\n"

    def format_text(self, props: Props, text: str) -> str:
        level = self._level(props)
        if level == 1:
            return f"{text}\n{'=' * len(text)}\n\n"
        if level == 2:
            return f"{text}\n{'-' * len(text)}\n\n"
        return f"{text}\n\n"

    def format_html(self, props: Props, text: str) -> str:
        level = self._level(props)
        return f"<h{level}{html_class_attr(props)}>{text}</h{level}>\n"

    def format_xml(self, props: Props, text: str) -> str:
        return f"<header{xml_attrs(level=self._level(props))}>{text}</header>"

    def serialize(self, props: Props, text: str):
        key = str_prop(props, "name")
        if key:
            return {key: text}
        return {"type": self.name, "level": self._level(props), "content": text}


class ListItemFormatter(Formatter):
    name = "item"
    aliases = ("li",)
    default_whitespace = WhiteSpace.TRIM

    def format_markdown(self, props: Props, text: str) -> str:
        return f"- {_indent_continuation(text)}\n"

    def format_html(self, props: Props, text: str) -> str:
        return f"<li{html_class_attr(props)}>{text}</li>"


class ListFormatter(Formatter):
    name = "list"
    default_whitespace = WhiteSpace.PRE

    def format_markdown(self, props: Props, text: str) -> str:
        body = text.strip("\n")
        if not body:
            return ""
        if bool_prop(props, "ordered"):
            counter = itertools.count(int_prop(props, "start", self.name, default=1))
            body = _LIST_LINE_RE.sub(lambda _m: f"{next(counter)}. ", body)
        return f"{body}\n\n"

    def format_html(self, props: Props, text: str) -> str:
        if bool_prop(props, "ordered"):
            start = int_prop(props, "start", self.name)
            return f"<ol{xml_attrs(start=start)}{html_class_attr(props)}>{text}</ol>\n"
        return f"<ul{html_class_attr(props)}>{text}</ul>\n"

    def format_xml(self, props: Props, text: str) -> str:
        ordered = bool_prop(props, "ordered")
        return f"<list{xml_attrs(ordered=ordered or None)}>{text}</list>"

    def serialize(self, props: Props, text: str):
        key = str_prop(props, "name")
        if key:
            return {key: text}
        return {"type": self.name, "ordered": bool_prop(props, "ordered"), "content": text}


class CodeFormatter(Formatter):
    name = "code"
    default_whitespace = WhiteSpace.PRE

    def _inline(self, props: Props, text: str) -> bool:
        # without an explicit prop, multi-line content becomes a block.
        return bool_prop(props, "inline", default="\n" not in text.strip("\n"))

    def _lang(self, props: Props) -> str:
        return get_language_hint(str_prop(props, "lang"))

    def format_markdown(self, props: Props, text: str) -> str:
        if self._inline(props, text):
            return f"`{text}`"
        body = text.strip("\n")
        return f"```{self._lang(props)}\n{body}\n```\n\n"

    def format_text(self, props: Props, text: str) -> str:
        if self._inline(props, text):
            return text
        body = text.strip("\n")
        return f"{body}\n\n"

    def format_html(self, props: Props, text: str) -> str:
        if self._inline(props, text):
            return f"<code>{text}</code>"
        lang = self._lang(props)
        lang_class = f' class="language-{escape_html(lang)}"' if lang else ""
        body = text.strip("\n")
        return f"<pre><code{lang_class}>{body}</code></pre>\n"

    def format_xml(self, props: Props, text: str) -> str:
        return f"<code{xml_attrs(language=self._lang(props) or None)}>{text}</code>"

    def serialize(self, props: Props, text: str):
        key = str_prop(props, "name")
        if key:
            return {key: text}
        return {"type": self.name, "lang": self._lang(props) or None, "content": text}


class CaptionedParagraphFormatter(Formatter):
    """
    A paragraph introduced by a caption.

    captionStyle         header | bold | plain | hidden   (default header)
    captionEnding        colon | newline | colon-newline | none
                         (default colon for bold/plain, none otherwise)
    captionTextTransform upper | lower | capitalize | none
    captionSerialized    key used by json/yaml/xml instead of the caption
    """
    name = "captioned-paragraph"
    aliases = ("cp",)
    default_caption: Optional[str] = None
    default_caption_style = "header"

    def _caption(self, props: Props) -> str:
        caption = str_prop(props, "caption", self.default_caption)
        if caption is None:
            raise PropValidationError(self.name, "caption", "'caption' is required")
        transform = (str_prop(props, "captionTextTransform") or "none").lower()
        if transform == "upper":
            return caption.upper()
        if transform == "lower":
            return caption.lower()
        if transform == "capitalize":
            return caption[:1].upper() + caption[1:]
        return caption

    def _style(self, props: Props) -> str:
        style = (str_prop(props, "captionStyle") or self.default_caption_style).lower()
        if style not in CAPTION_STYLES:
            raise PropValidationError(self.name, "captionStyle", f"unknown captionStyle {style!r}")
        return style

    def _ending(self, props: Props, style: str) -> str:
        default = "colon" if style in ("bold", "plain") else "none"
        ending = (str_prop(props, "captionEnding") or default).lower()
        if ending not in CAPTION_ENDINGS:
            raise PropValidationError(self.name, "captionEnding", f"unknown captionEnding {ending!r}")
        return ending

    def _caption_line(self, caption: str, ending: str) -> str:
        # returns the caption with its ending and the separator before the body.
        if ending == "colon":
            return f"{caption}: "
        if ending == "newline":
            return f"{caption}\n"
        if ending == "colon-newline":
            return f"{caption}:\n"
        return f"{caption} "

    def format_markdown(self, props: Props, text: str) -> str:
        style = self._style(props)
        lead = "\n" if bool_prop(props, "blankLine") else ""
        body = text.strip("\n")
        if style == "hidden":
            return f"{lead}{body}\n\n" if body else ""
        caption = self._caption(props)
        ending = self._ending(props, style)
        if style == "header":
            suffix = ":" if ending.startswith("colon") else ""
            return f"{lead}# {caption}{suffix}\n\n{body}\n\n"
        if style == "bold":
            caption = f"**{caption}**"
        return f"{lead}{self._caption_line(caption, ending)}{body}\n\n"

    def format_text(self, props: Props, text: str) -> str:
        style = self._style(props)
        body = text.strip("\n")
        if style == "hidden":
            return f"{body}\n\n" if body else ""
        caption = self._caption(props)
        ending = self._ending(props, style)
        if style == "header":
            return f"{caption}\n\n{body}\n\n"
        return f"{self._caption_line(caption, ending)}{body}\n\n"

    def format_html(self, props: Props, text: str) -> str:
        style = self._style(props)
        cls = html_class_attr(props, base=self.name)
        if style == "hidden":
            return f"<div{cls}>{text}</div>\n"
        caption = escape_html(self._caption(props))
        if style == "header":
            return f"<div{cls}><h3>{caption}</h3><p>{text}</p></div>\n"
        if style == "bold":
            return f"<div{cls}><p><strong>{caption}:</strong> {text}</p></div>\n"
        return f"<div{cls}><p>{caption}: {text}</p></div>\n"

    def _serialized_key(self, props: Props) -> str:
        return str_prop(props, "name") or str_prop(props, "captionSerialized") or self._caption(props)

    def format_xml(self, props: Props, text: str) -> str:
        tag = _xml_name(self._serialized_key(props))
        return f"<{tag}>{text}</{tag}>"

    def serialize(self, props: Props, text: str):
        return {self._serialized_key(props): text}


class HintFormatter(CaptionedParagraphFormatter):
    name = "hint"
    aliases = ()
    default_caption = "Hint"
    default_caption_style = "bold"


class RoleFormatter(CaptionedParagraphFormatter):
    name = "role"
    aliases = ()
    default_caption = "Role"


class TaskFormatter(CaptionedParagraphFormatter):
    name = "task"
    aliases = ()
    default_caption = "Task"


class QuestionFormatter(CaptionedParagraphFormatter):
    name = "question"
    aliases = ()
    default_caption = "Question"
    default_caption_style = "plain"

    def format_markdown(self, props: Props, text: str) -> str:
        # a trailing answer cue invites the model to continue.
        return super().format_markdown(props, text) + "Answer:"

    def format_text(self, props: Props, text: str) -> str:
        return super().format_text(props, text) + "Answer:"


class OutputFormatFormatter(CaptionedParagraphFormatter):
    name = "output-format"
    aliases = ("output_format",)
    default_caption = "Output Format"


class ExampleFormatter(CaptionedParagraphFormatter):
    name = "example"
    aliases = ()
    default_caption = "Example"


class StepwiseInstructionsFormatter(CaptionedParagraphFormatter):
    name = "stepwise-instructions"
    aliases = ("stepwise_instructions",)
    default_caption = "Stepwise Instructions"


class IntroducerFormatter(CaptionedParagraphFormatter):
    name = "introducer"
    aliases = ()
    default_caption = "Introducer"
    default_caption_style = "hidden"


class DocumentFormatter(Formatter):
    """Top-level container; an optional `title` prop becomes a level 1 header."""
    name = "document"
    aliases = ("poml",)
    default_whitespace = WhiteSpace.PRE

    def format_markdown(self, props: Props, text: str) -> str:
        title = str_prop(props, "title")
        return f"# {title}\n\n{text}" if title else text

    def format_html(self, props: Props, text: str) -> str:
        title = str_prop(props, "title")
        heading = f"<h1>{escape_html(title)}</h1>\n" if title else ""
        return f"<div{html_class_attr(props, base='document')}>\n{heading}{text}</div>\n"

    def format_xml(self, props: Props, text: str) -> str:
        return f"<document{xml_attrs(title=str_prop(props, 'title'))}>{text}</document>"

    def serialize(self, props: Props, text: str):
        title = str_prop(props, "title")
        record = {"type": self.name, "content": text}
        if title:
            record["title"] = title
        return record


class SubContentFormatter(Formatter):
    """A titled subsection nested inside a larger block."""
    name = "sub-content"
    aliases = ("subcontent",)
    default_whitespace = WhiteSpace.TRIM

    def format_markdown(self, props: Props, text: str) -> str:
        title = str_prop(props, "title")
        heading = f"### {title}\n\n" if title else ""
        return f"{heading}{text}\n\n" if text else heading

    def format_text(self, props: Props, text: str) -> str:
        title = str_prop(props, "title")
        heading = f"{title}\n{'=' * len(title)}\n\n" if title else ""
        return f"{heading}{text}\n\n" if text else heading

    def format_html(self, props: Props, text: str) -> str:
        title = str_prop(props, "title")
        heading = f"<h3>{escape_html(title)}</h3>" if title else ""
        return f"<section{html_class_attr(props, base=self.name)}>{heading}<div>{text}</div></section>\n"

    def format_xml(self, props: Props, text: str) -> str:
        return f"<subcontent{xml_attrs(title=str_prop(props, 'title'))}>{text}</subcontent>"

    def serialize(self, props: Props, text: str):
        key = str_prop(props, "name")
        if key:
            return {key: text}
        record = {"type": "subcontent", "content": text}
        title = str_prop(props, "title")
        if title:
            record["title"] = title
        return record


class FragmentFormatter(Formatter):
    """Renders its children with no markup of its own, in every syntax."""
    name = "fragment"
    aliases = ("loop",)
    default_whitespace = WhiteSpace.PRE

    def format_xml(self, props: Props, text: str) -> str:
        return text

    def format_json(self, props: Props, text: str) -> str:
        return text

    def format_yaml(self, props: Props, text: str) -> str:
        return text

