from typing import Optional


class PromptDocError(Exception):
    # base exception for all application-specific errors.
    pass

class ConfigError(PromptDocError):
    # errors related to configuration.
    pass

class DocumentError(PromptDocError):
    # errors while loading a serialized node tree.
    pass

class ExpressionError(PromptDocError):
    # errors while evaluating a condition, loop source or path expression.
    # never fatal: callers log and fall back.
    pass

class ExpressionSyntaxError(ExpressionError):
    # malformed expression text.
    def __init__(self, message: str, position: int):
        self.message = message
        self.position = position
        super().__init__(f"syntax error at position {position}: {message}")

class RenderError(PromptDocError):
    # errors that abort a render pass.
    pass

class PropValidationError(RenderError):
    # a formatter received missing or contradictory props.
    def __init__(self, tag: str, prop: Optional[str], message: str):
        self.tag = tag
        self.prop = prop
        super().__init__(f"<{tag}>: {message}")

class UnknownTagError(RenderError):
    # tag name matched neither a built-in formatter nor a registered component.
    def __init__(self, tag: str):
        self.tag = tag
        super().__init__(f"unknown tag '{tag}'")

class OutputError(PromptDocError):
    # errors during output operations.
    pass
