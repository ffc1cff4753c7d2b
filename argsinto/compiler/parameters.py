"""
Argument Extractor
==================

Splits a function signature into receiver and typed parameters.

Parameters are enumerated in signature order:

    positional-only, positional-or-keyword, *args, keyword-only, **kwargs

The first positional parameter is the receiver when it is named like one
(``self`` / ``cls`` by default). Every other parameter is a ``TypedParameter``,
whether or not it is annotated or variadic; validation of those shapes
happens later, in the signature rewriter.
"""

import ast
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Union

from ..config import ArgsIntoConfig, DEFAULT_CONFIG


class BindingPattern(Enum):
    NAME = "name"
    VAR_POSITIONAL = "*args"
    VAR_KEYWORD = "**kwargs"


@dataclass(frozen=True)
class Receiver:
    """The implicit self/cls argument of a method. Never transformed."""
    node: ast.arg

    @property
    def name(self) -> str:
        return self.node.arg


@dataclass(frozen=True)
class TypedParameter:
    """An explicit parameter, as found in the signature."""
    name: str
    annotation: Optional[ast.expr]
    node: ast.arg
    pattern: BindingPattern = BindingPattern.NAME


@dataclass(frozen=True)
class SimpleParameter:
    """A typed parameter validated to have a simple name and a declared type."""
    name: str
    annotation: ast.expr
    node: ast.arg


Parameter = Union[Receiver, TypedParameter]


def _positional(arguments: ast.arguments) -> List[ast.arg]:
    return list(arguments.posonlyargs) + list(arguments.args)


def classify_parameters(
    arguments: ast.arguments,
    config: ArgsIntoConfig = DEFAULT_CONFIG,
) -> List[Parameter]:
    """Tag every formal parameter as Receiver or TypedParameter, in order."""
    params: List[Parameter] = []
    for index, node in enumerate(_positional(arguments)):
        if index == 0 and node.arg in config.receiver_names:
            params.append(Receiver(node))
        else:
            params.append(TypedParameter(node.arg, node.annotation, node))
    if arguments.vararg is not None:
        node = arguments.vararg
        params.append(TypedParameter(
            node.arg, node.annotation, node, BindingPattern.VAR_POSITIONAL))
    for node in arguments.kwonlyargs:
        params.append(TypedParameter(node.arg, node.annotation, node))
    if arguments.kwarg is not None:
        node = arguments.kwarg
        params.append(TypedParameter(
            node.arg, node.annotation, node, BindingPattern.VAR_KEYWORD))
    return params


def extract_typed(params: Iterable[Parameter]) -> List[TypedParameter]:
    """Return the TypedParameter sub-sequence, preserving order."""
    return [p for p in params if isinstance(p, TypedParameter)]


def typed_names(params: Sequence[Parameter]) -> List[str]:
    return [p.name for p in extract_typed(params)]
