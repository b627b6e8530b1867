# promptdoc/formatting/__init__.py
"""
The built-in formatter catalog.

`builtin_formatters()` maps every canonical tag name and alias to a shared
formatter instance; the renderer consults it before the component registry.
"""
from typing import Dict, Iterable, Type

from .base import Formatter, WriterOptions
from .blocks import (
    CaptionedParagraphFormatter,
    CodeFormatter,
    DocumentFormatter,
    ExampleFormatter,
    FragmentFormatter,
    HeaderFormatter,
    HintFormatter,
    IntroducerFormatter,
    ListFormatter,
    ListItemFormatter,
    OutputFormatFormatter,
    ParagraphFormatter,
    QuestionFormatter,
    RoleFormatter,
    StepwiseInstructionsFormatter,
    SubContentFormatter,
    TaskFormatter,
)
from .data import ObjectFormatter, TableFormatter
from .examples import ExampleInputFormatter, ExampleOutputFormatter, ExampleSetFormatter
from .inline import (
    BoldFormatter,
    InlineFormatter,
    ItalicFormatter,
    NewlineFormatter,
    StrikethroughFormatter,
    TextFormatter,
    UnderlineFormatter,
)
from .media import AudioFormatter, FileTreeFormatter, ImageFormatter, WebpageFormatter
from .messages import (
    AiMessageFormatter,
    ConversationFormatter,
    HumanMessageFormatter,
    MessageContextFormatter,
    SystemMessageFormatter,
)
from .tools import ToolRequestFormatter, ToolResponseFormatter

BUILTIN_FORMATTER_CLASSES = (
    TextFormatter,
    BoldFormatter,
    ItalicFormatter,
    UnderlineFormatter,
    StrikethroughFormatter,
    NewlineFormatter,
    InlineFormatter,
    ParagraphFormatter,
    HeaderFormatter,
    ListFormatter,
    ListItemFormatter,
    CodeFormatter,
    CaptionedParagraphFormatter,
    HintFormatter,
    RoleFormatter,
    TaskFormatter,
    QuestionFormatter,
    OutputFormatFormatter,
    ExampleFormatter,
    StepwiseInstructionsFormatter,
    IntroducerFormatter,
    ExampleSetFormatter,
    ExampleInputFormatter,
    ExampleOutputFormatter,
    SubContentFormatter,
    DocumentFormatter,
    FragmentFormatter,
    SystemMessageFormatter,
    HumanMessageFormatter,
    AiMessageFormatter,
    ConversationFormatter,
    MessageContextFormatter,
    ToolRequestFormatter,
    ToolResponseFormatter,
    TableFormatter,
    ObjectFormatter,
    ImageFormatter,
    AudioFormatter,
    WebpageFormatter,
    FileTreeFormatter,
)


def formatter_table(classes: Iterable[Type[Formatter]]) -> Dict[str, Formatter]:
    table: Dict[str, Formatter] = {}
    for cls in classes:
        instance = cls()
        for key in (instance.name, *instance.aliases):
            table[key] = instance
    return table


def builtin_formatters() -> Dict[str, Formatter]:
    return formatter_table(BUILTIN_FORMATTER_CLASSES)


__all__ = ["BUILTIN_FORMATTER_CLASSES", "Formatter", "WriterOptions", "builtin_formatters", "formatter_table"]
