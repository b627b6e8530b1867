# promptdoc/__init__.py
"""
promptdoc: render structured prompt documents (trees of typed content nodes)
into markdown, html, json, yaml, xml or plain text.
"""
from promptdoc.config.settings import RenderConfig, Syntax, UnknownTagPolicy
from promptdoc.core.context import EvaluationContext
from promptdoc.core.nodes import (
    ComponentNode,
    FragmentNode,
    TagNode,
    TextNode,
    create_node,
    fragment,
)
from promptdoc.core.registry import ComponentRegistry
from promptdoc.core.renderer import Renderer, render, render_document

__version__ = "0.3.0"

__all__ = [
    "ComponentNode",
    "ComponentRegistry",
    "EvaluationContext",
    "FragmentNode",
    "RenderConfig",
    "Renderer",
    "Syntax",
    "TagNode",
    "TextNode",
    "UnknownTagPolicy",
    "create_node",
    "fragment",
    "render",
    "render_document",
]
