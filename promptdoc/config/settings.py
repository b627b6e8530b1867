from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional
import structlog

log = structlog.get_logger(__name__)

class Syntax(Enum):
    # output syntaxes every content formatter can target.
    MARKDOWN = "markdown"
    HTML = "html"
    JSON = "json"
    YAML = "yaml"
    XML = "xml"
    TEXT = "text"
    MULTIMEDIA = "multimedia"

    @classmethod
    def from_string(cls, s: Optional[str]) -> Optional["Syntax"]:
        if not s:
            return None
        if isinstance(s, Syntax):
            return s
        try:
            return cls(str(s).lower())
        except ValueError:
            log.warning("invalid_syntax_string", input_string=s)
            return None

    @property
    def is_serializer(self) -> bool:
        return self in (Syntax.JSON, Syntax.YAML, Syntax.XML)

class WhiteSpace(Enum):
    # whitespace handling applied to rendered children before formatting.
    PRE = "pre"
    FILTER = "filter"
    TRIM = "trim"

    @classmethod
    def from_string(cls, s: Optional[str]) -> Optional["WhiteSpace"]:
        if not s:
            return None
        try:
            return cls(str(s).lower())
        except ValueError:
            log.warning("invalid_whitespace_string", input_string=s)
            return None

class TruncateDirection(Enum):
    # which side of the content a charLimit cuts away.
    START = "start"
    MIDDLE = "middle"
    END = "end"

    @classmethod
    def from_string(cls, s: Optional[str]) -> Optional["TruncateDirection"]:
        if not s:
            return None
        try:
            return cls(str(s).lower())
        except ValueError:
            log.warning("invalid_truncate_direction_string", input_string=s)
            return None

class UnknownTagPolicy(Enum):
    # what the renderer does with a tag nobody knows how to format.
    PASSTHROUGH = "passthrough"
    ERROR = "error"

    @classmethod
    def from_string(cls, s: Optional[str]) -> Optional["UnknownTagPolicy"]:
        if not s:
            return None
        try:
            return cls(str(s).lower())
        except ValueError:
            log.warning("invalid_unknown_tag_policy_string", input_string=s)
            return None

DEFAULT_SYNTAX = Syntax.MARKDOWN
DEFAULT_UNKNOWN_TAG_POLICY = UnknownTagPolicy.PASSTHROUGH
DEFAULT_TRUNCATE_MARKER = "(...truncated)"
DEFAULT_TRUNCATE_DIRECTION = TruncateDirection.END

@dataclass
class RenderConfig:
    # holds all configuration parameters for a render pass.
    syntax: Syntax = DEFAULT_SYNTAX
    unknown_tag_policy: UnknownTagPolicy = DEFAULT_UNKNOWN_TAG_POLICY
    truncate_marker: str = DEFAULT_TRUNCATE_MARKER
    truncate_direction: TruncateDirection = DEFAULT_TRUNCATE_DIRECTION
    concurrent_children: bool = False
    base_dir: Path = field(default_factory=Path.cwd)

    def __post_init__(self):
        # relative media paths resolve against an absolute base.
        self.base_dir = Path(self.base_dir).resolve()
