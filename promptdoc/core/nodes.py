# promptdoc/core/nodes.py
"""
The node model: the tagged union of tree shapes the renderer accepts.

TextNode      - a literal string leaf
TagNode       - a built-in element addressed by tag name
ComponentNode - a callable formatter bound when the tree was built
FragmentNode  - transparent grouping of children

Nodes are frozen; props are stored read-only and children as tuples, so a
subtree is never mutated after construction. Loop expansion builds new nodes
instead of rebinding existing ones.
"""
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import (
    TYPE_CHECKING,
    Any,
    Awaitable,
    Callable,
    Iterable,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from promptdoc.core.context import EvaluationContext

if TYPE_CHECKING:
    from promptdoc.core.registry import ComponentRegistry

CONTROL_PROPS = ("if", "for")

def _freeze_props(props: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    if isinstance(props, MappingProxyType):
        return props
    return MappingProxyType(dict(props or {}))


@dataclass(frozen=True)
class TextNode:
    value: str

    @property
    def type(self) -> str:
        return "text"


@dataclass(frozen=True)
class TagNode:
    tag: str
    props: Mapping[str, Any] = field(default_factory=dict)
    children: Tuple["Node", ...] = ()
    context: Optional[EvaluationContext] = None

    def __post_init__(self):
        object.__setattr__(self, "props", _freeze_props(self.props))
        object.__setattr__(self, "children", tuple(self.children))

    @property
    def type(self) -> str:
        return self.tag


@dataclass(frozen=True)
class ComponentNode:
    ref: "ComponentFunction"
    props: Mapping[str, Any] = field(default_factory=dict)
    children: Tuple["Node", ...] = ()
    context: Optional[EvaluationContext] = None

    def __post_init__(self):
        object.__setattr__(self, "props", _freeze_props(self.props))
        object.__setattr__(self, "children", tuple(self.children))

    @property
    def type(self) -> "ComponentFunction":
        return self.ref


@dataclass(frozen=True)
class FragmentNode:
    children: Tuple["Node", ...] = ()
    context: Optional[EvaluationContext] = None

    def __post_init__(self):
        object.__setattr__(self, "children", tuple(self.children))

    @property
    def type(self) -> str:
        return "fragment"


Node = Union[TextNode, TagNode, ComponentNode, FragmentNode]
# what the renderer accepts at any position: a node, a bare string, or a sequence of either
Renderable = Union[Node, str, Sequence[Any]]
ComponentResult = Union[Renderable, Awaitable[Renderable]]
ComponentFunction = Callable[[dict, List[Node]], ComponentResult]

NODE_TYPES = (TextNode, TagNode, ComponentNode, FragmentNode)


def _to_node(child: Any) -> Node:
    if isinstance(child, NODE_TYPES):
        return child
    if isinstance(child, str):
        return TextNode(child)
    if isinstance(child, (list, tuple)):
        return FragmentNode(tuple(_to_node(c) for c in child if c is not None))
    raise TypeError(f"cannot use {type(child).__name__} as a document node")


def flatten_children(children: Iterable[Any]) -> Tuple[Node, ...]:
    """
    Flattens child arguments one level: a list/tuple argument is spliced in
    place, deeper sequences become FragmentNodes, strings become TextNodes
    and None entries are skipped.
    """
    flat: List[Node] = []
    for child in children:
        if child is None:
            continue
        if isinstance(child, (list, tuple)):
            flat.extend(_to_node(c) for c in child if c is not None)
        else:
            flat.append(_to_node(child))
    return tuple(flat)


def create_node(
    type_: Union[str, "ComponentFunction"],
    props: Optional[Mapping[str, Any]] = None,
    *children: Any,
    registry: Optional["ComponentRegistry"] = None,
) -> Node:
    """
    Builds a node. A string `type_` registered in `registry` is bound to the
    registered function (late binding); any other string is a built-in tag.
    Props are not validated here; formatters check what they need.
    """
    flat_children = flatten_children(children)
    if isinstance(type_, str):
        registered = registry.get(type_) if registry is not None else None
        if registered is not None:
            return ComponentNode(ref=registered, props=props or {}, children=flat_children)
        return TagNode(tag=type_, props=props or {}, children=flat_children)
    if callable(type_):
        return ComponentNode(ref=type_, props=props or {}, children=flat_children)
    raise TypeError(f"node type must be a tag name or a callable, got {type(type_).__name__}")


def fragment(*children: Any) -> FragmentNode:
    return FragmentNode(flatten_children(children))


def without_props(props: Mapping[str, Any], names: Iterable[str]) -> dict:
    drop = set(names)
    return {key: value for key, value in props.items() if key not in drop}
