# promptdoc/formatting/messages.py
"""
Chat message blocks: system, human and ai turns, the conversation that
holds them and the context attached to a message.
"""
import json
from collections.abc import Mapping
from typing import Any, Dict, List

from promptdoc.config.settings import WhiteSpace
from promptdoc.exceptions import PropValidationError

from .base import Formatter, Props, html_class_attr, str_prop
from .text_utils import escape_html, escape_xml_text, to_compact_json, xml_attrs


class MessageFormatter(Formatter):
    speaker: str = ""
    label: str = ""
    default_whitespace = WhiteSpace.TRIM

    def format_markdown(self, props: Props, text: str) -> str:
        return f"**{self.label}**: {text}\n\n"

    def format_text(self, props: Props, text: str) -> str:
        return f"{self.label}: {text}\n\n"

    def format_html(self, props: Props, text: str) -> str:
        cls = html_class_attr(props, base=f"{self.speaker}-message")
        return f"<div{cls}><strong>{self.label}</strong>: {text}</div>\n"

    def serialize(self, props: Props, text: str):
        key = str_prop(props, "name")
        if key:
            return {key: text}
        return {"speaker": self.speaker, "content": text}


class SystemMessageFormatter(MessageFormatter):
    name = "system-msg"
    aliases = ("system-message",)
    speaker = "system"
    label = "System"


class HumanMessageFormatter(MessageFormatter):
    name = "human-msg"
    aliases = ("human-message", "user-msg")
    speaker = "human"
    label = "Human"


class AiMessageFormatter(MessageFormatter):
    name = "ai-msg"
    aliases = ("ai-message", "assistant-msg")
    speaker = "ai"
    label = "AI"


def _participants(props: Props, tag: str) -> List[str]:
    value = props.get("participants")
    if value is None or value == "":
        return []
    if isinstance(value, str):
        return [name.strip() for name in value.split(",") if name.strip()]
    if isinstance(value, (list, tuple)):
        return [str(name) for name in value]
    raise PropValidationError(tag, "participants", "'participants' must be a list or a comma-separated string")


class ConversationFormatter(Formatter):
    """A transcript of message blocks with an optional title and participant list."""
    name = "conversation"
    aliases = ("chat",)
    default_whitespace = WhiteSpace.PRE

    def format_markdown(self, props: Props, text: str) -> str:
        head = ""
        title = str_prop(props, "title")
        if title:
            head += f"### {title}\n\n"
        participants = _participants(props, self.name)
        if participants:
            head += f"**Participants:** {', '.join(participants)}\n\n"
        body = text.strip("\n")
        return f"{head}---\n{body}\n---\n\n"

    def format_text(self, props: Props, text: str) -> str:
        head = ""
        title = str_prop(props, "title")
        if title:
            head += f"{title}\n\n"
        participants = _participants(props, self.name)
        if participants:
            head += f"Participants: {', '.join(participants)}\n\n"
        body = text.strip("\n")
        return f"{head}{body}\n\n"

    def format_html(self, props: Props, text: str) -> str:
        title = str_prop(props, "title")
        participants = _participants(props, self.name)
        heading = f"<h3>{escape_html(title)}</h3>" if title else ""
        names = (
            f"<p><strong>Participants:</strong> {escape_html(', '.join(participants))}</p>" if participants else ""
        )
        cls = html_class_attr(props, base=self.name)
        return f'<div{cls}>{heading}{names}<div class="conversation-content">{text}</div></div>\n'

    def format_xml(self, props: Props, text: str) -> str:
        participants = _participants(props, self.name)
        names = ""
        if participants:
            names = "<participants>" + "".join(
                f"<participant>{escape_xml_text(name)}</participant>" for name in participants
            ) + "</participants>"
        return f"<conversation{xml_attrs(title=str_prop(props, 'title'))}>{names}<content>{text}</content></conversation>"

    def serialize(self, props: Props, text: str):
        key = str_prop(props, "name")
        if key:
            return {key: text}
        record: Dict[str, Any] = {"type": self.name, "content": text}
        title = str_prop(props, "title")
        if title:
            record["title"] = title
        participants = _participants(props, self.name)
        if participants:
            record["participants"] = participants
        return record


class MessageContextFormatter(Formatter):
    """
    Background attached to a message: a `description` line, `metadata`
    key/value pairs, then the rendered children as the content.
    """
    name = "message-context"
    aliases = ("msg-context",)
    default_whitespace = WhiteSpace.TRIM

    def _metadata(self, props: Props) -> Dict[str, Any]:
        metadata = props.get("metadata")
        if metadata is None:
            return {}
        if not isinstance(metadata, Mapping):
            raise PropValidationError(self.name, "metadata", "'metadata' must be a mapping")
        return {str(key): value for key, value in metadata.items()}

    def _blocks(self, props: Props, text: str, context_label: str, content_label: str, row: str) -> str:
        blocks = []
        description = str_prop(props, "description")
        if description:
            blocks.append(f"{context_label}: {description}")
        metadata = self._metadata(props)
        if metadata:
            blocks.append("\n".join(row.format(key=key, value=to_compact_json(value)) for key, value in metadata.items()))
        if text:
            blocks.append(f"{content_label}: {text}")
        return "\n\n".join(blocks) + "\n\n" if blocks else ""

    def format_markdown(self, props: Props, text: str) -> str:
        return self._blocks(props, text, "**Context**", "**Content**", "- {key}: {value}")

    def format_text(self, props: Props, text: str) -> str:
        return self._blocks(props, text, "Context", "Content", "{key}: {value}")

    def format_html(self, props: Props, text: str) -> str:
        parts = []
        description = str_prop(props, "description")
        if description:
            parts.append(f"<h4>Context: {escape_html(description)}</h4>")
        metadata = self._metadata(props)
        if metadata:
            items = "".join(
                f"<li><strong>{escape_html(key)}:</strong> {escape_html(to_compact_json(value))}</li>"
                for key, value in metadata.items()
            )
            parts.append(f"<ul>{items}</ul>")
        if text:
            parts.append(f"<p><strong>Content:</strong> {text}</p>")
        return f"<div{html_class_attr(props, base=self.name)}>{''.join(parts)}</div>\n"

    def format_xml(self, props: Props, text: str) -> str:
        metadata = self._metadata(props)
        entries = "".join(
            f"<entry{xml_attrs(key=key)}>{escape_xml_text(to_compact_json(value))}</entry>"
            for key, value in metadata.items()
        )
        inner = f"<metadata>{entries}</metadata>" if entries else ""
        if text:
            inner += f"<content>{text}</content>"
        attrs = xml_attrs(description=str_prop(props, "description"))
        return f"<message-context{attrs}>{inner}</message-context>"

    def serialize(self, props: Props, text: str):
        key = str_prop(props, "name")
        if key:
            return {key: text}
        record: Dict[str, Any] = {"type": self.name}
        description = str_prop(props, "description")
        if description:
            record["description"] = description
        metadata = self._metadata(props)
        if metadata:
            # a json round trip keeps yaml output to plain types
            record["metadata"] = json.loads(to_compact_json(metadata))
        if text:
            record["content"] = text
        return record
