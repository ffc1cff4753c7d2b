"""
Error taxonomy for the args-into transformation.

Every failure is fatal for the function being rewritten: there is no partial
output and no fallback to the untransformed original.
"""

from typing import Optional


class ArgsIntoError(Exception):
    """Base class for every error raised by argsinto."""


class WrongItemKindError(ArgsIntoError, TypeError):
    """The trigger was applied to something that is not a function."""

    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(f"args_into can only be applied to a function, got {kind}")


class UnsupportedParameterPatternError(ArgsIntoError, ValueError):
    """A parameter binding is not a single simple name (``*args`` / ``**kwargs``)."""

    def __init__(self, function: str, parameter: str, pattern: str):
        self.function = function
        self.parameter = parameter
        self.pattern = pattern
        super().__init__(
            f"{function}: parameter {parameter!r} uses an unsupported "
            f"{pattern} binding; only simple names can be converted"
        )


class MissingParameterTypeError(ArgsIntoError, ValueError):
    """An explicit parameter has no annotation to convert into."""

    def __init__(self, function: str, parameter: str):
        self.function = function
        self.parameter = parameter
        super().__init__(
            f"{function}: parameter {parameter!r} has no type annotation"
        )


class GenericNameCollisionError(ArgsIntoError, ValueError):
    """A synthesized type parameter name is already taken."""

    def __init__(self, function: str, name: str, parameter: Optional[str] = None):
        self.function = function
        self.name = name
        self.parameter = parameter
        source = f" (from parameter {parameter!r})" if parameter else ""
        super().__init__(
            f"{function}: generic parameter {name!r}{source} collides "
            f"with an existing type parameter"
        )


class TriggerArgumentError(ArgsIntoError, ValueError):
    """A keyword given to the trigger decorator is not a literal value."""

    def __init__(self, function: str, keyword: str, reason: str):
        self.function = function
        self.keyword = keyword
        super().__init__(
            f"{function}: args_into keyword {keyword!r} must be a literal value: {reason}"
        )


class InternalInvariantError(ArgsIntoError, AssertionError):
    """A pipeline stage observed a state that contradicts the data model."""


class SourceUnavailableError(ArgsIntoError, OSError):
    """The source of a live function cannot be retrieved or recompiled."""


class ConversionError(ArgsIntoError, TypeError):
    """A value could not be converted into the requested type at call time."""

    def __init__(self, value, target, reason: str = ""):
        self.value = value
        self.target = target
        detail = f": {reason}" if reason else ""
        super().__init__(
            f"cannot convert {type(value).__name__} into {_describe(target)}{detail}"
        )


def _describe(target) -> str:
    if isinstance(target, type):
        return target.__qualname__
    return repr(target)
