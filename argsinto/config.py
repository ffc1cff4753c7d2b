"""
Configuration for the args-into transformation.
"""

import dataclasses
from dataclasses import dataclass
from typing import Tuple


# Default marker prepended to parameter names before upper-casing.
DEFAULT_PREFIX = "__"

# Module the emitted bounds and conversions are qualified with.
DEFAULT_RUNTIME_MODULE = "argsinto"


@dataclass(frozen=True)
class ArgsIntoConfig:
    """
    Knobs for one transformer instance.

    Usage:
        >>> config = ArgsIntoConfig(check_collisions=False)
        >>> config.replace(prefix='_T_').prefix
        '_T_'
    """
    prefix: str = DEFAULT_PREFIX
    runtime_module: str = DEFAULT_RUNTIME_MODULE
    receiver_names: Tuple[str, ...] = ("self", "cls")
    check_collisions: bool = True
    lint_suppressions: Tuple[str, ...] = ("invalid-name",)
    trigger_names: Tuple[str, ...] = ("args_into",)

    def __post_init__(self):
        if not self.prefix.isidentifier():
            raise ValueError(f"prefix must be a valid identifier, got {self.prefix!r}")
        if not all(part.isidentifier() for part in self.runtime_module.split('.')):
            raise ValueError(f"invalid runtime module name {self.runtime_module!r}")

    def replace(self, **overrides) -> 'ArgsIntoConfig':
        """Return a copy with ``overrides`` applied; unknown keys raise TypeError."""
        known = {f.name for f in dataclasses.fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"unknown config option(s): {', '.join(sorted(unknown))}")
        return dataclasses.replace(self, **overrides)


DEFAULT_CONFIG = ArgsIntoConfig()
