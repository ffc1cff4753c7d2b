"""
argsinto: Convertible Arguments for Python Functions
====================================================

Rewrites a function so that callers may pass any value convertible into a
parameter's declared type, while the body keeps working on that type.

Each explicit parameter ``name: T`` becomes a PEP 695 type parameter
``__NAME: Into[T]`` and the body opens with ``name = into(name, T)``.

Core Components:
    - compiler: argument extraction, generic synthesis, prologue generation
    - runtime: the ``Into`` protocol and the ``into`` conversion function

Usage:
    >>> import argsinto
    >>> @argsinto.args_into
    ... def print_details(first_name: str, last_name: str, age: int):
    ...     return f"{first_name} {last_name} ({age})"
    >>> print_details("Ada", "Lovelace", "36")
    'Ada Lovelace (36)'
"""

__version__ = "0.1.0"

from argsinto.config import ArgsIntoConfig
from argsinto.errors import (
    ArgsIntoError,
    ConversionError,
    GenericNameCollisionError,
    InternalInvariantError,
    MissingParameterTypeError,
    SourceUnavailableError,
    TriggerArgumentError,
    UnsupportedParameterPatternError,
    WrongItemKindError,
)
from argsinto.runtime.convert import Into, into, register_conversion, unregister_conversion
from argsinto.compiler.transformer import ArgsIntoTransformer, TransformResult
from argsinto.decorators import args_into
