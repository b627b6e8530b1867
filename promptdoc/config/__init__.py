# promptdoc/config/__init__.py
"""
Configuration for promptdoc: the RenderConfig dataclass, its enums,
and the TOML loader for user/project configuration files.
"""
from .settings import (
    RenderConfig,
    Syntax,
    TruncateDirection,
    UnknownTagPolicy,
    WhiteSpace,
)
from .loader import config_from_mapping, load_and_merge_configs

__all__ = [
    "RenderConfig",
    "Syntax",
    "TruncateDirection",
    "UnknownTagPolicy",
    "WhiteSpace",
    "config_from_mapping",
    "load_and_merge_configs",
]
