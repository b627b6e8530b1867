# promptdoc/core/loops.py
"""
Expansion of nodes carrying a `for="item in source"` prop.
"""
import dataclasses
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, List, Optional
import structlog

from promptdoc.core.context import EvaluationContext
from promptdoc.core.expressions import evaluate_expression
from promptdoc.core.nodes import ComponentNode, FragmentNode, Node, TagNode, without_props
from promptdoc.exceptions import ExpressionError

log = structlog.get_logger(__name__)

LOOP_PROP = "for"
LOOP_EXPRESSION_RE = re.compile(r"^\s*([A-Za-z_$][\w$]*)\s+in\s+(.+?)\s*$", re.DOTALL)

@dataclass(frozen=True)
class LoopExpression:
    item_name: str
    source_expression: str

def parse_loop_expression(expression: Any) -> Optional[LoopExpression]:
    # None (not an error) when the text is not "identifier in source".
    if not isinstance(expression, str):
        return None
    match = LOOP_EXPRESSION_RE.match(expression)
    if not match:
        return None
    return LoopExpression(item_name=match.group(1), source_expression=match.group(2))

def evaluate_source_expression(source_expression: str, context: Optional[Mapping] = None) -> List[Any]:
    # inline list literals and context lookups; anything else yields [].
    try:
        result = evaluate_expression(source_expression, EvaluationContext.coerce(context))
    except ExpressionError as e:
        log.warning("loop_source_evaluation_failed", source=source_expression, error=str(e))
        return []
    if not isinstance(result, (list, tuple)):
        log.warning("loop_source_not_a_collection", source=source_expression, result_type=type(result).__name__)
        return []
    return list(result)

def create_loop_context(
    base: Optional[Mapping], item_name: str, item_value: Any, index: int, length: int
) -> EvaluationContext:
    return EvaluationContext.coerce(base).overlay({
        item_name: item_value,
        "loop": {
            "index": index,
            "length": length,
            "first": index == 0,
            "last": index == length - 1,
        },
    })

def expand_loop(node: Node, context: Optional[Mapping] = None) -> Optional[FragmentNode]:
    """
    Expands a node with a `for` prop into a FragmentNode holding one clone
    per element of the source collection, in source order.

    Each clone drops the `for` prop (so it does not expand again) and carries
    its own loop context. Returns None when the loop expression does not
    parse; the caller decides how to treat the node then.
    """
    if not isinstance(node, (TagNode, ComponentNode)):
        return None
    parsed = parse_loop_expression(node.props.get(LOOP_PROP))
    if parsed is None:
        return None

    items = evaluate_source_expression(parsed.source_expression, context)
    props = without_props(node.props, [LOOP_PROP])
    length = len(items)
    clones = tuple(
        dataclasses.replace(
            node,
            props=props,
            context=create_loop_context(context, parsed.item_name, item, index, length),
        )
        for index, item in enumerate(items)
    )
    log.debug("loop_expanded", item_name=parsed.item_name, source=parsed.source_expression, iterations=length)
    return FragmentNode(children=clones)
