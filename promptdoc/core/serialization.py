# promptdoc/core/serialization.py
"""
Loads node trees from JSON or YAML.

Accepted shapes, recursively:
  "text"                                        -> TextNode
  [child, ...]                                  -> FragmentNode
  {"fragment": [child, ...]}                    -> FragmentNode
  {"tag": name, "props": {...}, "children": [...]}
                                                -> TagNode, or ComponentNode
                                                   when `name` is registered
"""
import json
from pathlib import Path
from typing import Any, Optional
import yaml
import structlog

from promptdoc.core.nodes import FragmentNode, Node, TextNode, create_node
from promptdoc.core.registry import ComponentRegistry
from promptdoc.exceptions import DocumentError

log = structlog.get_logger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")
NODE_KEYS = {"tag", "props", "children"}


def node_from_data(data: Any, registry: Optional[ComponentRegistry] = None, _path: str = "$") -> Node:
    if isinstance(data, str):
        return TextNode(data)
    if isinstance(data, (int, float)) and not isinstance(data, bool):
        # bare scalars in yaml lists are almost always meant as text.
        return TextNode(str(data))
    if isinstance(data, list):
        return FragmentNode(tuple(
            node_from_data(child, registry, f"{_path}[{i}]") for i, child in enumerate(data)
        ))
    if isinstance(data, dict):
        if set(data) == {"fragment"}:
            children = data["fragment"]
            if not isinstance(children, list):
                raise DocumentError(f"{_path}.fragment: expected a list of children")
            return node_from_data(children, registry, f"{_path}.fragment")
        if "tag" in data:
            unknown = set(data) - NODE_KEYS
            if unknown:
                raise DocumentError(f"{_path}: unexpected keys {sorted(unknown)}")
            tag = data["tag"]
            props = data.get("props") or {}
            children = data.get("children") or []
            if not isinstance(tag, str) or not tag:
                raise DocumentError(f"{_path}.tag: expected a non-empty string")
            if not isinstance(props, dict):
                raise DocumentError(f"{_path}.props: expected a mapping")
            if not isinstance(children, list):
                raise DocumentError(f"{_path}.children: expected a list")
            return create_node(
                tag,
                props,
                [node_from_data(child, registry, f"{_path}.children[{i}]") for i, child in enumerate(children)],
                registry=registry,
            )
    raise DocumentError(f"{_path}: cannot build a node from {type(data).__name__}")


def load_document(path: Path, registry: Optional[ComponentRegistry] = None) -> Node:
    """Reads a JSON or YAML document (chosen by suffix) and builds its node tree."""
    log.info("loading_document", path=str(path))
    try:
        raw_text = path.read_text(encoding="utf-8-sig")
    except OSError as e:
        raise DocumentError(f"cannot read document '{path}': {e}") from e
    try:
        if path.suffix.lower() in YAML_SUFFIXES:
            data = yaml.safe_load(raw_text)
        else:
            data = json.loads(raw_text)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise DocumentError(f"cannot parse document '{path}': {e}") from e
    return node_from_data(data, registry)
