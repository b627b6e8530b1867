# promptdoc/core/registry.py
"""
Name -> component function table for custom tags.
"""
from typing import Callable, Dict, List, Optional
import structlog

from promptdoc.core.nodes import ComponentFunction

log = structlog.get_logger(__name__)

class ComponentRegistry:
    """
    Maps custom tag names to component functions.

    Consulted when a string tag is turned into a node (late binding) and by
    the renderer as the fallback for tag names with no built-in formatter.
    Treat register/unregister/clear as configuration done before a render.
    """
    def __init__(self, components: Optional[Dict[str, ComponentFunction]] = None):
        self._components: Dict[str, ComponentFunction] = {}
        for name, fn in (components or {}).items():
            self.register(name, fn)

    def register(self, name: str, fn: ComponentFunction) -> ComponentFunction:
        if not callable(fn):
            raise TypeError(f"component '{name}' must be callable")
        if name in self._components:
            log.debug("component_overwritten", name=name)
        self._components[name] = fn
        log.debug("component_registered", name=name)
        return fn

    def component(self, name: str) -> Callable[[ComponentFunction], ComponentFunction]:
        # decorator form of register().
        def decorator(fn: ComponentFunction) -> ComponentFunction:
            return self.register(name, fn)
        return decorator

    def unregister(self, name: str) -> None:
        if self._components.pop(name, None) is not None:
            log.debug("component_unregistered", name=name)

    def get(self, name: str) -> Optional[ComponentFunction]:
        return self._components.get(name)

    def clear(self) -> None:
        self._components.clear()
        log.debug("component_registry_cleared")

    def names(self) -> List[str]:
        return sorted(self._components)

    def __contains__(self, name: object) -> bool:
        return name in self._components

    def __len__(self) -> int:
        return len(self._components)
