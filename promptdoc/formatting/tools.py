# promptdoc/formatting/tools.py
"""
Tool-use transcript blocks: `tool-request` records a call the model made,
`tool-response` what the tool sent back. Rendered children become the
free-form details line.
"""
import json
from collections.abc import Mapping
from typing import Any, Dict, List, Tuple

from promptdoc.config.settings import WhiteSpace
from promptdoc.exceptions import PropValidationError

from .base import Formatter, Props, html_class_attr, str_prop
from .data import value_to_xml
from .text_utils import escape_html, escape_xml_text, to_compact_json, xml_attrs

TOOL_STATUSES = ("success", "error", "pending")

Field = Tuple[str, Any]


def _scalar(value: Any) -> str:
    return value if isinstance(value, str) else to_compact_json(value)


class ToolCallFormatter(Formatter):
    label: str = ""
    default_whitespace = WhiteSpace.TRIM

    def _tool(self, props: Props) -> str:
        tool = str_prop(props, "tool")
        if not tool:
            raise PropValidationError(self.name, "tool", "'tool' is required")
        return tool

    def _plain(self, props: Props, key: str) -> Any:
        if props.get(key) is None:
            return None
        try:
            return json.loads(json.dumps(props[key], default=str))
        except (TypeError, ValueError) as e:
            raise PropValidationError(self.name, key, f"'{key}' is not serializable: {e}") from None

    def _fields(self, props: Props) -> List[Field]:
        # (label, value) rows in display order; absent values are skipped.
        raise NotImplementedError

    def _record(self, props: Props) -> Dict[str, Any]:
        raise NotImplementedError

    def format_markdown(self, props: Props, text: str) -> str:
        lines = [f"**{self.label}**", ""]
        for label, value in self._fields(props):
            if isinstance(value, dict):
                lines.append(f"- **{label}**:")
                lines.extend(f"  - {key}: {to_compact_json(item)}" for key, item in value.items())
            else:
                lines.append(f"- **{label}**: {_scalar(value)}")
        if text:
            lines += ["", f"**Details**: {text}"]
        return "\n".join(lines) + "\n\n"

    def format_text(self, props: Props, text: str) -> str:
        lines = [f"[{self.label}]"]
        for label, value in self._fields(props):
            if isinstance(value, dict):
                lines.append(f"{label}:")
                lines.extend(f"  {key}: {to_compact_json(item)}" for key, item in value.items())
            else:
                lines.append(f"{label}: {_scalar(value)}")
        if text:
            lines.append(f"Details: {text}")
        return "\n".join(lines) + "\n\n"

    def format_html(self, props: Props, text: str) -> str:
        rows = []
        for label, value in self._fields(props):
            if isinstance(value, dict):
                nested = "".join(
                    f"<li>{escape_html(str(key))}: {escape_html(to_compact_json(item))}</li>"
                    for key, item in value.items()
                )
                rows.append(f"<li><strong>{label}:</strong><ul>{nested}</ul></li>")
            else:
                rows.append(f"<li><strong>{label}:</strong> {escape_html(_scalar(value))}</li>")
        details = f"<p><strong>Details:</strong> {text}</p>" if text else ""
        cls = html_class_attr(props, base=self.name)
        return f"<div{cls}><h4>{self.label}</h4><ul>{''.join(rows)}</ul>{details}</div>\n"

    def serialize(self, props: Props, text: str):
        key = str_prop(props, "name")
        if key:
            return {key: text}
        record = {"type": self.name, **self._record(props)}
        if text:
            record["content"] = text
        return record


class ToolRequestFormatter(ToolCallFormatter):
    """tool (required), parameters (mapping of argument values), requestId."""
    name = "tool-request"
    aliases = ("tool-call",)
    label = "Tool Request"

    def _parameters(self, props: Props) -> Any:
        parameters = props.get("parameters")
        if parameters is not None and not isinstance(parameters, Mapping):
            raise PropValidationError(self.name, "parameters", "'parameters' must be a mapping")
        return self._plain(props, "parameters")

    def _fields(self, props: Props) -> List[Field]:
        fields: List[Field] = [("Tool", self._tool(props))]
        request_id = str_prop(props, "requestId")
        if request_id:
            fields.append(("Request ID", request_id))
        parameters = self._parameters(props)
        if parameters:
            fields.append(("Parameters", parameters))
        return fields

    def _record(self, props: Props) -> Dict[str, Any]:
        record: Dict[str, Any] = {"tool": self._tool(props)}
        request_id = str_prop(props, "requestId")
        if request_id:
            record["requestId"] = request_id
        parameters = self._parameters(props)
        if parameters:
            record["parameters"] = parameters
        return record

    def format_xml(self, props: Props, text: str) -> str:
        attrs = xml_attrs(tool=self._tool(props), request_id=str_prop(props, "requestId"))
        parameters = self._parameters(props)
        inner = value_to_xml("parameters", parameters) if parameters else ""
        details = f"<details>{text}</details>" if text else ""
        return f"<tool-request{attrs}>{inner}{details}</tool-request>"


class ToolResponseFormatter(ToolCallFormatter):
    """tool (required), status (success | error | pending), data, error."""
    name = "tool-response"
    aliases = ("tool-result",)
    label = "Tool Response"

    def _status(self, props: Props) -> str:
        status = (str_prop(props, "status") or "success").lower()
        if status not in TOOL_STATUSES:
            raise PropValidationError(self.name, "status", f"unknown status {status!r}")
        return status

    def _fields(self, props: Props) -> List[Field]:
        fields: List[Field] = [("Tool", self._tool(props)), ("Status", self._status(props))]
        data = self._plain(props, "data")
        if data is not None:
            fields.append(("Data", data))
        error = str_prop(props, "error")
        if error:
            fields.append(("Error", error))
        return fields

    def _record(self, props: Props) -> Dict[str, Any]:
        record: Dict[str, Any] = {"tool": self._tool(props), "status": self._status(props)}
        data = self._plain(props, "data")
        if data is not None:
            record["data"] = data
        error = str_prop(props, "error")
        if error:
            record["error"] = error
        return record

    def format_xml(self, props: Props, text: str) -> str:
        attrs = xml_attrs(tool=self._tool(props), status=self._status(props))
        data = self._plain(props, "data")
        inner = value_to_xml("data", data) if data is not None else ""
        error = str_prop(props, "error")
        if error:
            inner += f"<error>{escape_xml_text(error)}</error>"
        details = f"<details>{text}</details>" if text else ""
        return f"<tool-response{attrs}>{inner}{details}</tool-response>"
