# promptdoc/core/context.py
"""
Evaluation contexts: immutable, chained name->value scopes threaded through
the tree walk, plus the per-renderer holder for the root context.
"""
from collections.abc import Mapping, Sequence
from typing import Any, Dict, Iterable, Iterator, Optional
import structlog

log = structlog.get_logger(__name__)

_MISSING = object()


def resolve_segment(value: Any, segment: str) -> Any:
    """
    Resolves one path segment against a value.

    Mappings are indexed by key, sequences by integer index (or the
    `length` pseudo-property), other objects by public attribute.
    Raises KeyError when the segment does not resolve.
    """
    if isinstance(value, Mapping):
        try:
            found = segment in value
        except TypeError:
            # unhashable key, e.g. a list or object literal used as an index
            raise KeyError(repr(segment)) from None
        if found:
            return value[segment]
        raise KeyError(segment)
    if isinstance(value, (Sequence, str)):
        if isinstance(segment, int) or (isinstance(segment, str) and segment.lstrip("-").isdigit()):
            try:
                return value[int(segment)]
            except IndexError:
                raise KeyError(segment) from None
        if segment == "length":
            return len(value)
        raise KeyError(segment)
    if value is None or not isinstance(segment, str) or segment.startswith("_"):
        raise KeyError(segment)
    attr = getattr(value, segment, _MISSING)
    if attr is _MISSING or callable(attr):
        raise KeyError(segment)
    return attr


class EvaluationContext(Mapping):
    """
    A read-only scope of bindings overlaid on an optional parent scope.

    Lookups fall through to the parent when a name is not bound locally.
    `overlay()` never mutates: it returns a new child scope, so sibling
    subtrees rendered with different overlays cannot observe each other.
    """

    __slots__ = ("_bindings", "_parent")

    def __init__(self, bindings: Optional[Mapping] = None, parent: Optional["EvaluationContext"] = None):
        self._bindings: Dict[str, Any] = dict(bindings or {})
        self._parent = parent

    @classmethod
    def coerce(cls, value: Optional[Mapping]) -> "EvaluationContext":
        if isinstance(value, EvaluationContext):
            return value
        return cls(value)

    @property
    def parent(self) -> Optional["EvaluationContext"]:
        return self._parent

    def __getitem__(self, name: str) -> Any:
        scope: Optional[EvaluationContext] = self
        while scope is not None:
            if name in scope._bindings:
                return scope._bindings[name]
            scope = scope._parent
        raise KeyError(name)

    def __contains__(self, name: object) -> bool:
        scope: Optional[EvaluationContext] = self
        while scope is not None:
            if name in scope._bindings:
                return True
            scope = scope._parent
        return False

    def __iter__(self) -> Iterator[str]:
        seen = set()
        scope: Optional[EvaluationContext] = self
        while scope is not None:
            for name in scope._bindings:
                if name not in seen:
                    seen.add(name)
                    yield name
            scope = scope._parent

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __repr__(self) -> str:
        return f"EvaluationContext({self.to_dict()!r})"

    def overlay(self, bindings: Mapping) -> "EvaluationContext":
        return EvaluationContext(bindings, parent=self)

    def lookup_path(self, segments: Iterable[Any]) -> Any:
        # walks a dotted path from this scope; KeyError on the first miss.
        parts = list(segments)
        if not parts:
            raise KeyError("")
        value = self[parts[0]]
        for segment in parts[1:]:
            value = resolve_segment(value, segment)
        return value

    def to_dict(self) -> Dict[str, Any]:
        return {name: self[name] for name in self}


class ContextManager:
    # holds the root context of one renderer; traversal threads scopes by parameter.
    def __init__(self, root: Optional[Mapping] = None):
        self._root = EvaluationContext.coerce(root)

    def set_root_context(self, bindings: Optional[Mapping]) -> None:
        self._root = EvaluationContext.coerce(bindings)
        log.debug("root_context_set", keys=sorted(self._root))

    def get_root_context(self) -> EvaluationContext:
        return self._root
