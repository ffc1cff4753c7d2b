"""
The ``@args_into`` trigger.

Usage:
    >>> from argsinto import args_into
    >>> @args_into
    ... def print_details(first_name: str, last_name: str, age: int):
    ...     ...

    >>> @args_into(prefix='_T_', check_collisions=False)
    ... def scale(value: float, factor: float):
    ...     ...
"""

import logging
from typing import Callable, Optional

from .compiler.transformer import ArgsIntoTransformer


def args_into(func: Optional[Callable] = None, *, enable_logging: bool = False, **overrides) -> Callable:
    """Rewrite ``func`` so each parameter accepts anything convertible into its annotation."""
    if func is None:
        return lambda f: args_into(f, enable_logging=enable_logging, **overrides)

    if enable_logging:
        logging.basicConfig(level=logging.DEBUG)

    return ArgsIntoTransformer(**overrides).transform_function(func)
