# promptdoc/formatting/data.py
"""
Structured-data formatters: `table` (records with optional columns) and
`obj` (an arbitrary JSON-compatible value).
"""
import json
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Tuple

from promptdoc.core.interpolation import stringify_value
from promptdoc.exceptions import PropValidationError

from .base import Formatter, Props, html_class_attr, str_prop
from .text_utils import escape_html, escape_xml_text, to_json, to_yaml, xml_attrs


def _cell(value: Any) -> str:
    rendered = stringify_value(value)
    return "" if rendered is None else rendered


def _markdown_cell(text: str) -> str:
    return text.replace("|", "\\|").replace("\n", " ")


class TableFormatter(Formatter):
    """
    Renders `records` as a table.

    records  list of dicts (columns default to the union of keys, first-seen
             order) or list of lists (columns default to "Column N")
    columns  optional list of column names, or of {"field", "header"} dicts
    caption  optional caption line
    Without `records` the rendered children are emitted unchanged.
    """
    name = "table"

    def _columns(self, props: Props, records: List[Any]) -> List[Tuple[Any, str]]:
        # (field, header) pairs; field is a dict key or a list index.
        columns = props.get("columns")
        if columns is not None:
            if not isinstance(columns, (list, tuple)):
                raise PropValidationError(self.name, "columns", "'columns' must be a list")
            pairs = []
            for index, column in enumerate(columns):
                if isinstance(column, Mapping):
                    field = column.get("field", index)
                    pairs.append((field, str(column.get("header", field))))
                else:
                    pairs.append((column if records and isinstance(records[0], Mapping) else index, str(column)))
            return pairs
        if records and all(isinstance(r, Mapping) for r in records):
            seen: Dict[str, None] = {}
            for record in records:
                for key in record:
                    seen.setdefault(key, None)
            return [(key, str(key)) for key in seen]
        width = max((len(r) for r in records if isinstance(r, (list, tuple))), default=0)
        return [(index, f"Column {index + 1}") for index in range(width)]

    def _table(self, props: Props) -> Optional[Tuple[List[str], List[List[str]]]]:
        records = props.get("records")
        if records is None:
            return None
        if not isinstance(records, (list, tuple)):
            raise PropValidationError(self.name, "records", f"'records' must be a list, got {type(records).__name__}")
        records = list(records)
        columns = self._columns(props, records)
        rows = []
        for record in records:
            if isinstance(record, Mapping):
                rows.append([_cell(record.get(field)) for field, _ in columns])
            elif isinstance(record, (list, tuple)):
                rows.append([
                    _cell(record[field]) if isinstance(field, int) and field < len(record) else ""
                    for field, _ in columns
                ])
            else:
                raise PropValidationError(self.name, "records", "each record must be a dict or a list")
        return [header for _, header in columns], rows

    def _records(self, headers: List[str], rows: List[List[str]]) -> List[Dict[str, str]]:
        return [dict(zip(headers, row)) for row in rows]

    def format_markdown(self, props: Props, text: str) -> str:
        table = self._table(props)
        if table is None:
            return text
        headers, rows = table
        caption = str_prop(props, "caption")
        lines = [f"Table: {caption}", ""] if caption else []
        lines.append("| " + " | ".join(_markdown_cell(h) for h in headers) + " |")
        lines.append("| " + " | ".join("---" for _ in headers) + " |")
        for row in rows:
            lines.append("| " + " | ".join(_markdown_cell(c) for c in row) + " |")
        return "\n".join(lines) + "\n\n"

    def format_text(self, props: Props, text: str) -> str:
        # tab-separated, header first
        table = self._table(props)
        if table is None:
            return text
        headers, rows = table
        lines = ["\t".join(headers)] + ["\t".join(row) for row in rows]
        return "\n".join(lines) + "\n\n"

    def format_html(self, props: Props, text: str) -> str:
        table = self._table(props)
        if table is None:
            return text
        headers, rows = table
        parts = [f"<table{html_class_attr(props)}>"]
        caption = str_prop(props, "caption")
        if caption:
            parts.append(f"<caption>{escape_html(caption)}</caption>")
        parts.append("<thead><tr>" + "".join(f"<th>{escape_html(h)}</th>" for h in headers) + "</tr></thead>")
        parts.append("<tbody>")
        for row in rows:
            parts.append("<tr>" + "".join(f"<td>{escape_html(c)}</td>" for c in row) + "</tr>")
        parts.append("</tbody></table>")
        return "\n".join(parts) + "\n"

    def format_xml(self, props: Props, text: str) -> str:
        table = self._table(props)
        if table is None:
            return f"<table>{text}</table>"
        headers, rows = table
        body = "".join(
            "<row>" + "".join(
                f"<cell{xml_attrs(name=h)}>{escape_xml_text(c)}</cell>" for h, c in zip(headers, row)
            ) + "</row>"
            for row in rows
        )
        return f"<table{xml_attrs(caption=str_prop(props, 'caption'))}>{body}</table>"

    def serialize(self, props: Props, text: str):
        table = self._table(props)
        if table is None:
            return super().serialize(props, text)
        records = self._records(*table)
        key = str_prop(props, "name")
        return {key: records} if key else records


class ObjectFormatter(Formatter):
    name = "obj"
    aliases = ("object",)

    def _data(self, props: Props) -> Any:
        if "data" not in props:
            raise PropValidationError(self.name, "data", "'data' is required")
        # a json round trip turns tuples and mapping proxies into plain lists/dicts.
        try:
            return json.loads(json.dumps(props["data"], default=str))
        except (TypeError, ValueError) as e:
            raise PropValidationError(self.name, "data", f"'data' is not serializable: {e}") from None

    def format_markdown(self, props: Props, text: str) -> str:
        return f"```json\n{to_json(self._data(props))}\n```\n\n"

    def format_text(self, props: Props, text: str) -> str:
        return to_json(self._data(props)) + "\n"

    def format_html(self, props: Props, text: str) -> str:
        return f"<pre{html_class_attr(props)}><code>{escape_html(to_json(self._data(props)))}</code></pre>\n"

    def format_xml(self, props: Props, text: str) -> str:
        return value_to_xml("object", self._data(props))

    def format_json(self, props: Props, text: str) -> str:
        return to_json(self._serialized(props))

    def format_yaml(self, props: Props, text: str) -> str:
        return to_yaml(self._serialized(props))

    def _serialized(self, props: Props) -> Any:
        key = str_prop(props, "name")
        data = self._data(props)
        return {key: data} if key else data


def value_to_xml(tag: str, value: Any) -> str:
    if isinstance(value, dict):
        inner = "".join(value_to_xml(str(k), v) for k, v in value.items())
    elif isinstance(value, list):
        inner = "".join(value_to_xml("item", v) for v in value)
    else:
        inner = escape_xml_text(_cell(value))
    # keys are not guaranteed to be valid element names; fall back to a name attribute.
    if tag.replace("-", "").replace("_", "").isalnum() and not tag[0].isdigit():
        return f"<{tag}>{inner}</{tag}>"
    return f"<entry{xml_attrs(name=tag)}>{inner}</entry>"
