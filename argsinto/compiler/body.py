"""
Body Prologue Generator
=======================

Produces one shadowing conversion per simple parameter:

    name = argsinto.into(name, T)

Each statement reads and writes only its own name, so the statements are
independent of one another. They are prepended as a single block in
parameter order, ahead of every original statement. A leading docstring is
not a statement of the body proper and stays in front so ``__doc__`` is kept.
"""

import ast
import copy
from typing import List, Sequence

from ..config import ArgsIntoConfig, DEFAULT_CONFIG
from .generics import runtime_attribute
from .parameters import SimpleParameter

# Name of the conversion function inside the runtime module.
CONVERT_NAME = "into"


def conversion_target(annotation: ast.expr) -> ast.expr:
    """
    Expression naming the conversion target. A string forward reference is
    parsed so that it is evaluated at call time, once the name exists.
    """
    if isinstance(annotation, ast.Constant) and isinstance(annotation.value, str):
        try:
            return ast.parse(annotation.value.strip(), mode='eval').body
        except SyntaxError:
            return copy.deepcopy(annotation)
    return copy.deepcopy(annotation)


def make_conversion(param: SimpleParameter, config: ArgsIntoConfig = DEFAULT_CONFIG) -> ast.Assign:
    call = ast.Call(
        func=runtime_attribute(CONVERT_NAME, config),
        args=[ast.Name(id=param.name, ctx=ast.Load()), conversion_target(param.annotation)],
        keywords=[],
    )
    return ast.Assign(
        targets=[ast.Name(id=param.name, ctx=ast.Store())],
        value=call,
    )


def generate_prologue(
    params: Sequence[SimpleParameter],
    config: ArgsIntoConfig = DEFAULT_CONFIG,
) -> List[ast.stmt]:
    return [make_conversion(p, config) for p in params]


def has_docstring(body: Sequence[ast.stmt]) -> bool:
    return (
        bool(body)
        and isinstance(body[0], ast.Expr)
        and isinstance(body[0].value, ast.Constant)
        and isinstance(body[0].value.value, str)
    )


def prepend_prologue(body: Sequence[ast.stmt], prologue: Sequence[ast.stmt]) -> List[ast.stmt]:
    """Return ``prologue + body``, keeping a leading docstring in front."""
    body = list(body)
    if has_docstring(body):
        return body[:1] + list(prologue) + body[1:]
    return list(prologue) + body
