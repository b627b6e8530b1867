# promptdoc/formatting/media.py
"""
Media formatters. These are the only formatters that touch the filesystem;
all of their I/O happens in the async `prepare` hook, with blocking reads
pushed to a worker thread via asyncio.to_thread. `webpage` cites a remote page
by url and never fetches it.
"""
import asyncio
import base64
import re
from pathlib import Path
from typing import Any, Dict, List, Optional
import pathspec  # type: ignore # for .gitignore and exclude pattern matching
import structlog

from promptdoc.config.settings import RenderConfig, WhiteSpace
from promptdoc.exceptions import PropValidationError
from promptdoc.util import guess_mime_type

from .base import Formatter, Props, html_class_attr, int_prop, bool_prop, str_prop
from .text_utils import escape_html, escape_xml_text, to_json, to_yaml, xml_attrs

log = structlog.get_logger(__name__)

_URL_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://|^data:")


def _resolve(path_str: str, config: RenderConfig) -> Path:
    path = Path(path_str).expanduser()
    return path if path.is_absolute() else config.base_dir / path


class MediaFormatter(Formatter):
    """
    Shared behaviour for `img` and `audio`.

    Props: src (path or url), base64, alt, type (mime), caption. A local `src`
    is read and base64-encoded during `prepare`; after that the formatting
    methods only see `base64` + `type`. A failed read drops `src`, which makes
    every syntax fall back to the alt text.
    """
    kind: str = ""
    label: str = ""
    default_mime: str = "application/octet-stream"

    async def prepare(self, props: Props, config: RenderConfig) -> Props:
        src = str_prop(props, "src")
        if src and props.get("base64"):
            raise PropValidationError(self.name, "src", "cannot use both 'src' and 'base64'")
        if not src or _URL_RE.match(src):
            return props

        path = _resolve(src, config)
        prepared = dict(props)
        prepared.pop("src", None)
        try:
            data = await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            log.warning("media_file_read_failed", tag=self.name, path=str(path), error=str(e))
            return prepared
        prepared["base64"] = base64.b64encode(data).decode("ascii")
        prepared["type"] = str_prop(props, "type") or guess_mime_type(str(path), self.default_mime)
        log.debug("media_file_loaded", tag=self.name, path=str(path), size_bytes=len(data))
        return prepared

    def _mime(self, props: Props) -> str:
        return str_prop(props, "type") or self.default_mime

    def _url(self, props: Props) -> Optional[str]:
        encoded = str_prop(props, "base64")
        if encoded:
            return f"data:{self._mime(props)};base64,{encoded}"
        return str_prop(props, "src")

    def _alt(self, props: Props) -> str:
        return str_prop(props, "alt", "") or ""

    def format_text(self, props: Props, text: str) -> str:
        alt = self._alt(props)
        if alt:
            result = f"[{self.label}: {alt}]"
        elif props.get("src"):
            result = f"[{self.label}: {props['src']}]"
        elif props.get("base64"):
            result = f"[{self.label}: Base64 data]"
        else:
            result = f"[{self.label}]"
        caption = str_prop(props, "caption")
        return f"{result}\n{caption}" if caption else result

    def format_multimedia(self, props: Props, text: str) -> str:
        # a placeholder the multimodal message builder swaps for the payload.
        if not self._url(props):
            alt = self._alt(props)
            return f"[{alt}]" if alt else ""
        result = f"[{self.label.upper()}: {self._alt(props) or self.label}]"
        caption = str_prop(props, "caption")
        return f"{result}\nCaption: {caption}" if caption else result

    def serialize(self, props: Props, text: str) -> Dict[str, Any]:
        record: Dict[str, Any] = {"type": self.kind}
        for key, value in (
            ("src", str_prop(props, "src")),
            ("base64", str_prop(props, "base64")),
            ("mime", str_prop(props, "type") if (props.get("base64") or props.get("type")) else None),
            ("alt", str_prop(props, "alt")),
            ("caption", str_prop(props, "caption")),
        ):
            if value is not None:
                record[key] = value
        return record

    def format_xml(self, props: Props, text: str) -> str:
        attrs = xml_attrs(
            src=str_prop(props, "src"),
            alt=str_prop(props, "alt"),
            type=str_prop(props, "type"),
            **self._extra_xml_attrs(props),
        )
        inner = ""
        if props.get("base64"):
            inner += f"<base64>{escape_xml_text(str(props['base64']))}</base64>"
        if props.get("caption"):
            inner += f"<caption>{escape_xml_text(str(props['caption']))}</caption>"
        if not inner:
            return f"<{self.kind}{attrs} />"
        return f"<{self.kind}{attrs}>{inner}</{self.kind}>"

    def _extra_xml_attrs(self, props: Props) -> Dict[str, Any]:
        return {}


class ImageFormatter(MediaFormatter):
    name = "image"
    aliases = ("img",)
    kind = "image"
    label = "Image"
    default_mime = "image/png"

    def _extra_xml_attrs(self, props: Props) -> Dict[str, Any]:
        return {"width": props.get("width"), "height": props.get("height")}

    def format_markdown(self, props: Props, text: str) -> str:
        url = self._url(props)
        alt = self._alt(props)
        if not url:
            return f"[{alt}]" if alt else ""
        result = f"![{alt}]({url})"
        caption = str_prop(props, "caption")
        return f"{result}\n\n*{caption}*" if caption else result

    def format_html(self, props: Props, text: str) -> str:
        url = self._url(props)
        alt = self._alt(props)
        if not url:
            return f'<span class="image-alt">{escape_html(alt)}</span>' if alt else ""
        size = xml_attrs(width=props.get("width"), height=props.get("height"))
        html = f'<img src="{escape_html(url)}" alt="{escape_html(alt)}"{size}{html_class_attr(props)} />'
        caption = str_prop(props, "caption")
        if caption:
            html = f"<figure>{html}<figcaption>{escape_html(caption)}</figcaption></figure>"
        return html


class AudioFormatter(MediaFormatter):
    name = "audio"
    kind = "audio"
    label = "Audio"
    default_mime = "audio/mpeg"

    def format_markdown(self, props: Props, text: str) -> str:
        url = self._url(props)
        if not url:
            alt = self._alt(props)
            return f"[{alt}]" if alt else ""
        # markdown has no audio syntax; inline html is what renderers accept.
        return f'<audio controls src="{escape_html(url)}"></audio>'

    def format_html(self, props: Props, text: str) -> str:
        url = self._url(props)
        alt = self._alt(props)
        if not url:
            return f'<span class="audio-alt">{escape_html(alt)}</span>' if alt else ""
        return (
            f'<audio controls{html_class_attr(props)}>'
            f'<source src="{escape_html(url)}" type="{escape_html(self._mime(props))}" />'
            f"{escape_html(alt)}</audio>"
        )


class WebpageFormatter(Formatter):
    """
    A cited web page: `url` (required), `title`, the CSS `selector` the
    excerpt came from and `extractText`. Children are the quoted excerpt;
    the page itself is never fetched.
    """
    name = "webpage"
    aliases = ("web",)
    default_whitespace = WhiteSpace.TRIM

    def _url(self, props: Props) -> str:
        url = str_prop(props, "url")
        if not url:
            raise PropValidationError(self.name, "url", "'url' is required")
        return url

    def _notes(self, props: Props) -> List[str]:
        notes = []
        selector = str_prop(props, "selector")
        if selector:
            notes.append(f"Selector: `{selector}`")
        if bool_prop(props, "extractText"):
            notes.append("Text Only")
        return notes

    def format_markdown(self, props: Props, text: str) -> str:
        url = self._url(props)
        line = f"[{str_prop(props, 'title') or url}]({url})"
        notes = self._notes(props)
        if notes:
            line += f" ({', '.join(notes)})"
        return f"{line}\n\n{text}\n\n" if text else f"{line}\n\n"

    def format_text(self, props: Props, text: str) -> str:
        url = self._url(props)
        title = str_prop(props, "title")
        line = f"{title} <{url}>" if title else url
        notes = [note.replace("`", "") for note in self._notes(props)]
        if notes:
            line += f" ({', '.join(notes)})"
        return f"{line}\n\n{text}\n\n" if text else f"{line}\n\n"

    def format_html(self, props: Props, text: str) -> str:
        url = self._url(props)
        title = str_prop(props, "title") or url
        heading = f'<h3><a href="{escape_html(url)}">{escape_html(title)}</a></h3>'
        selector = str_prop(props, "selector")
        notes = f"<p><em>Selector: <code>{escape_html(selector)}</code></em></p>" if selector else ""
        body = f'<div class="webpage-content">{text}</div>' if text else ""
        return f"<div{html_class_attr(props, base=self.name)}>{heading}{notes}{body}</div>\n"

    def format_xml(self, props: Props, text: str) -> str:
        attrs = xml_attrs(
            url=self._url(props),
            title=str_prop(props, "title"),
            selector=str_prop(props, "selector"),
            extract_text=True if bool_prop(props, "extractText") else None,
        )
        if not text:
            return f"<webpage{attrs} />"
        return f"<webpage{attrs}>{text}</webpage>"

    def serialize(self, props: Props, text: str) -> Dict[str, Any]:
        key = str_prop(props, "name")
        if key:
            return {key: text}
        record: Dict[str, Any] = {"type": self.name, "url": self._url(props)}
        for prop in ("title", "selector"):
            value = str_prop(props, prop)
            if value:
                record[prop] = value
        if bool_prop(props, "extractText"):
            record["extractText"] = True
        if text:
            record["content"] = text
        return record


def _load_spec(lines: List[str]) -> Optional[pathspec.PathSpec]:
    if not lines:
        return None
    try:
        return pathspec.PathSpec.from_lines(pathspec.patterns.GitWildMatchPattern, lines)
    except Exception as e:  # pathspec can raise assorted errors for invalid patterns.
        raise PropValidationError("file-tree", "exclude", f"invalid pattern: {e}") from None


def _read_gitignore(directory: Path) -> List[str]:
    gitignore_file = directory / ".gitignore"
    if not gitignore_file.is_file():
        return []
    with gitignore_file.open("r", encoding="utf-8", errors="ignore") as f_obj:
        return f_obj.read().splitlines()


def scan_directory(root: Path, depth: int, spec: Optional[pathspec.PathSpec]) -> List[Dict[str, Any]]:
    """
    Lists `root` recursively down to `depth` levels (1 = direct children).
    Entries are {"name", "type": "dir"|"file", "children"} dicts, sorted
    case-insensitively by name. `.git` is always skipped.
    """
    def walk(directory: Path, level: int) -> List[Dict[str, Any]]:
        entries: List[Dict[str, Any]] = []
        for item in sorted(directory.iterdir(), key=lambda p: p.name.lower()):
            if item.name == ".git":
                continue
            is_dir = item.is_dir()
            rel = item.relative_to(root).as_posix()
            if spec and (spec.match_file(rel) or (is_dir and spec.match_file(rel + "/"))):
                log.debug("file_tree_entry_excluded", path=rel)
                continue
            entry: Dict[str, Any] = {"name": item.name, "type": "dir" if is_dir else "file"}
            if is_dir:
                entry["children"] = walk(item, level + 1) if level < depth else []
            entries.append(entry)
        return entries

    return walk(root, 1)


def tree_lines(entries: List[Dict[str, Any]], indent_str: str = "") -> List[str]:
    output_lines: List[str] = []
    for i, entry in enumerate(entries):
        is_last_item_at_this_level = i == len(entries) - 1
        connector_str = "└── " if is_last_item_at_this_level else "├── "
        suffix = "/" if entry["type"] == "dir" else ""
        output_lines.append(f"{indent_str}{connector_str}{entry['name']}{suffix}")
        if entry.get("children"):
            new_indent_str = indent_str + ("    " if is_last_item_at_this_level else "│   ")
            output_lines.extend(tree_lines(entry["children"], new_indent_str))
    return output_lines


class FileTreeFormatter(Formatter):
    """
    Directory listing. Props: path (default "."), depth (default 1),
    exclude (gitignore-style patterns, list or comma-separated string),
    respectGitignore (default true). `prepare` adds `_root` and `_entries`;
    `_entries` is None when the directory could not be read.
    """
    name = "file-tree"
    aliases = ("folder", "tree")

    async def prepare(self, props: Props, config: RenderConfig) -> Props:
        path_str = str_prop(props, "path", ".") or "."
        root = _resolve(path_str, config).resolve()
        depth = max(1, int_prop(props, "depth", self.name, default=1))

        exclude = props.get("exclude") or []
        if isinstance(exclude, str):
            exclude = [p.strip() for p in exclude.split(",") if p.strip()]
        elif not isinstance(exclude, (list, tuple)):
            raise PropValidationError(self.name, "exclude", "'exclude' must be a list or a comma-separated string")

        prepared = dict(props)
        prepared["_root"] = root.name or str(root)
        try:
            patterns = list(exclude)
            if bool_prop(props, "respectGitignore", default=True):
                patterns.extend(await asyncio.to_thread(_read_gitignore, root))
            spec = _load_spec(patterns)
            prepared["_entries"] = await asyncio.to_thread(scan_directory, root, depth, spec)
        except OSError as e:
            log.warning("file_tree_unavailable", path=str(root), error=str(e))
            prepared["_entries"] = None
        return prepared

    def _listing(self, props: Props) -> str:
        root = props.get("_root", str_prop(props, "path", "."))
        entries = props.get("_entries")
        if entries is None:
            return f"({root}: unavailable)"
        return "\n".join([f"{root}/"] + tree_lines(entries))

    def format_markdown(self, props: Props, text: str) -> str:
        return f"```\n{self._listing(props)}\n```\n\n"

    def format_text(self, props: Props, text: str) -> str:
        return f"{self._listing(props)}\n\n"

    def format_html(self, props: Props, text: str) -> str:
        return f"<pre{html_class_attr(props, base='file-tree')}>{escape_html(self._listing(props))}</pre>\n"

    def serialize(self, props: Props, text: str) -> Dict[str, Any]:
        return {"type": self.name, "root": props.get("_root"), "entries": props.get("_entries")}

    def format_json(self, props: Props, text: str) -> str:
        return to_json(self.serialize(props, text))

    def format_yaml(self, props: Props, text: str) -> str:
        return to_yaml(self.serialize(props, text))

    def format_xml(self, props: Props, text: str) -> str:
        def element(entry: Dict[str, Any]) -> str:
            if entry["type"] == "dir":
                inner = "".join(element(child) for child in entry.get("children") or [])
                return f"<dir{xml_attrs(name=entry['name'])}>{inner}</dir>"
            return f"<file{xml_attrs(name=entry['name'])} />"

        body = "".join(element(entry) for entry in props.get("_entries") or [])
        return f"<file-tree{xml_attrs(root=props.get('_root'))}>{body}</file-tree>"
