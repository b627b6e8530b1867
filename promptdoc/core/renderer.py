# promptdoc/core/renderer.py
"""
The renderer: walks a node tree depth-first and produces one string.

Per node, in order: text leaves are interpolated (and escaped for html/xml),
sequences render element by element, `for` expands into clones, a false `if`
yields "", components are invoked, and tags are resolved against the
built-in formatter table, then the component registry, then the unknown-tag
policy. The ambient syntax flows down the tree and a formatter's `syntax`
prop overrides it for that subtree.
"""
import asyncio
import dataclasses
import inspect
import uuid
from collections.abc import Mapping
from typing import Any, Dict, Optional, Sequence
import structlog

from promptdoc.config.settings import RenderConfig, Syntax, UnknownTagPolicy
from promptdoc.core.conditions import evaluate_condition
from promptdoc.core.context import ContextManager, EvaluationContext
from promptdoc.core.interpolation import interpolate, interpolate_props
from promptdoc.core.loops import LOOP_PROP, expand_loop
from promptdoc.core.nodes import (
    CONTROL_PROPS,
    NODE_TYPES,
    ComponentFunction,
    ComponentNode,
    FragmentNode,
    Renderable,
    TagNode,
    TextNode,
    without_props,
)
from promptdoc.core.registry import ComponentRegistry
from promptdoc.exceptions import UnknownTagError
from promptdoc.formatting import Formatter, WriterOptions, builtin_formatters
from promptdoc.formatting.text_utils import escape_html, escape_xml_text

log = structlog.get_logger(__name__)


class Renderer:
    # renders node trees to strings for one configuration, registry and formatter table.
    def __init__(
        self,
        config: Optional[RenderConfig] = None,
        registry: Optional[ComponentRegistry] = None,
        formatters: Optional[Dict[str, Formatter]] = None,
    ):
        self.config: RenderConfig = config or RenderConfig()
        self.registry: ComponentRegistry = registry if registry is not None else ComponentRegistry()
        self.formatters: Dict[str, Formatter] = formatters if formatters is not None else builtin_formatters()
        self.context_manager = ContextManager()
        self.writer_options = WriterOptions.from_config(self.config)
        self.log = structlog.get_logger(f"{__name__}.{self.__class__.__name__}")

    def set_root_context(self, bindings: Optional[Mapping]) -> None:
        self.context_manager.set_root_context(bindings)

    def get_root_context(self) -> EvaluationContext:
        return self.context_manager.get_root_context()

    async def render(self, node: Renderable, context: Optional[Mapping] = None) -> str:
        """
        Renders `node` with `context`, or with the root context when no
        context is given. Fatal errors (PropValidationError, UnknownTagError
        under the error policy, exceptions raised by components) propagate
        unchanged; expression errors never do.
        """
        scope = self.get_root_context() if context is None else EvaluationContext.coerce(context)
        # every event logged during this render carries its id and root syntax
        with structlog.contextvars.bound_contextvars(render_id=uuid.uuid4().hex[:8], syntax=self.config.syntax.value):
            self.log.debug("render_started")
            result = await self._render(node, scope, self.config.syntax)
            self.log.debug("render_finished", output_length=len(result))
        return result

    async def _render(self, node: Any, context: EvaluationContext, syntax: Syntax) -> str:
        if node is None:
            return ""
        if isinstance(node, str):
            return self._render_text(node, context, syntax)
        if isinstance(node, TextNode):
            return self._render_text(node.value, context, syntax)
        if isinstance(node, (list, tuple)):
            return await self._render_sequence(node, context, syntax)
        if not isinstance(node, NODE_TYPES):
            raise TypeError(f"cannot render {type(node).__name__}")

        scope = node.context if node.context is not None else context
        if isinstance(node, FragmentNode):
            return await self._render_sequence(node.children, scope, syntax)

        if LOOP_PROP in node.props:
            expanded = expand_loop(node, scope)
            if expanded is not None:
                return await self._render(expanded, scope, syntax)
            log.warning("invalid_loop_expression", expression=node.props.get(LOOP_PROP))
            node = dataclasses.replace(node, props=without_props(node.props, [LOOP_PROP]))

        if "if" in node.props and not evaluate_condition(node.props["if"], scope):
            return ""

        if isinstance(node, ComponentNode):
            return await self._invoke_component(node.ref, node, scope, syntax)
        return await self._render_tag(node, scope, syntax)

    def _render_text(self, value: str, context: EvaluationContext, syntax: Syntax) -> str:
        text = interpolate(value, context)
        if syntax == Syntax.HTML:
            return escape_html(text)
        if syntax == Syntax.XML:
            return escape_xml_text(text)
        return text

    async def _render_sequence(self, children: Sequence[Any], context: EvaluationContext, syntax: Syntax) -> str:
        # output order is document order, whether siblings run one by one or concurrently.
        if self.config.concurrent_children and len(children) > 1:
            tasks = [asyncio.ensure_future(self._render(child, context, syntax)) for child in children]
            try:
                parts = await asyncio.gather(*tasks)
            except BaseException:
                # the first failure aborts the render; siblings still running are cancelled
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)
                raise
        else:
            parts = [await self._render(child, context, syntax) for child in children]
        return "".join(parts)

    def _component_props(self, node: Any, context: EvaluationContext) -> Dict[str, Any]:
        return interpolate_props(without_props(node.props, CONTROL_PROPS), context)

    async def _invoke_component(
        self, fn: ComponentFunction, node: Any, context: EvaluationContext, syntax: Syntax
    ) -> str:
        result = fn(self._component_props(node, context), list(node.children))
        if inspect.isawaitable(result):
            result = await result
        if isinstance(result, str):
            return result
        return await self._render(result, context, syntax)

    async def _render_tag(self, node: TagNode, context: EvaluationContext, syntax: Syntax) -> str:
        formatter = self.formatters.get(node.tag)
        if formatter is not None:
            return await self._render_formatted(formatter, node, context, syntax)

        registered = self.registry.get(node.tag)
        if registered is not None:
            return await self._invoke_component(registered, node, context, syntax)

        if self.config.unknown_tag_policy == UnknownTagPolicy.ERROR:
            raise UnknownTagError(node.tag)
        log.debug("unknown_tag_passthrough", tag=node.tag)
        return await self._render_sequence(node.children, context, syntax)

    async def _render_formatted(
        self, formatter: Formatter, node: TagNode, context: EvaluationContext, syntax: Syntax
    ) -> str:
        props = self._component_props(node, context)
        node_syntax = Syntax.from_string(props.get("syntax")) or syntax
        props = await formatter.prepare(props, self.config)
        children = formatter.select_children(props, node.children, context)
        text = await self._render_sequence(children, context, node_syntax)
        return formatter.format(props, text, node_syntax, self.writer_options)


async def render(
    node: Renderable,
    context: Optional[Mapping] = None,
    *,
    registry: Optional[ComponentRegistry] = None,
    config: Optional[RenderConfig] = None,
) -> str:
    return await Renderer(config=config, registry=registry).render(node, context)


def render_document(
    node: Renderable,
    context: Optional[Mapping] = None,
    *,
    registry: Optional[ComponentRegistry] = None,
    config: Optional[RenderConfig] = None,
) -> str:
    # synchronous entry point; must not be called from inside a running event loop.
    rendered = asyncio.run(render(node, context, registry=registry, config=config))
    return rendered.strip() + "\n"
