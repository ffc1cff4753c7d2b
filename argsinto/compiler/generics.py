"""
Generic Parameter Synthesis
===========================

Builds the PEP 695 type parameters that replace parameter annotations.

For each simple parameter ``name: T`` this module produces:

1. a synthesized identifier:  ``__NAME``  (prefix + name, upper-cased)
2. a bound:                   ``argsinto.Into[T]``
3. a rewritten signature:     ``def f[..., __NAME: argsinto.Into[T]](name: __NAME)``

The rewrite is done in three phases: names and bounds are computed from a
read-only view of the parameters, new ``ast.arg`` nodes are built, and only
then are the new argument lists swapped into the function.
"""

import ast
import copy
import logging
from typing import Dict, List, Sequence, Union

from ..config import ArgsIntoConfig, DEFAULT_CONFIG
from ..errors import (
    GenericNameCollisionError,
    InternalInvariantError,
    MissingParameterTypeError,
    UnsupportedParameterPatternError,
)
from .parameters import BindingPattern, SimpleParameter, TypedParameter

logger = logging.getLogger(__name__)

FunctionNode = Union[ast.FunctionDef, ast.AsyncFunctionDef]

# Name of the bound protocol inside the runtime module.
BOUND_NAME = "Into"


def runtime_attribute(attr: str, config: ArgsIntoConfig = DEFAULT_CONFIG) -> ast.expr:
    """Return a load of ``<runtime_module>.<attr>``."""
    parts = config.runtime_module.split('.')
    node: ast.expr = ast.Name(id=parts[0], ctx=ast.Load())
    for part in parts[1:] + [attr]:
        node = ast.Attribute(value=node, attr=part, ctx=ast.Load())
    return node


# ---- Name synthesis ----

def synthesize_name(name: str, prefix: str = DEFAULT_CONFIG.prefix) -> str:
    """``age`` -> ``__AGE``."""
    return (prefix + name).upper()


def synthesize_names(
    params: Sequence[SimpleParameter],
    config: ArgsIntoConfig = DEFAULT_CONFIG,
) -> List[str]:
    return [synthesize_name(p.name, config.prefix) for p in params]


# ---- Bound construction ----

def make_bound(annotation: ast.expr, config: ArgsIntoConfig = DEFAULT_CONFIG) -> ast.expr:
    """Build ``<runtime_module>.Into[annotation]`` around a copy of the annotation."""
    return ast.Subscript(
        value=runtime_attribute(BOUND_NAME, config),
        slice=copy.deepcopy(annotation),
        ctx=ast.Load(),
    )


def make_bounds(
    params: Sequence[SimpleParameter],
    config: ArgsIntoConfig = DEFAULT_CONFIG,
) -> List[ast.expr]:
    return [make_bound(p.annotation, config) for p in params]


def make_generic_parameters(names: Sequence[str], bounds: Sequence[ast.expr]) -> List[ast.TypeVar]:
    """Pair synthesized names with their bounds positionally."""
    if len(names) != len(bounds):
        raise InternalInvariantError(
            f"{len(names)} synthesized names but {len(bounds)} bounds"
        )
    return [ast.TypeVar(name=name, bound=bound) for name, bound in zip(names, bounds)]


# ---- Signature rewriting ----

def require_simple(param: TypedParameter, function: str) -> SimpleParameter:
    """Validate a typed parameter; variadic or unannotated ones are fatal."""
    if param.pattern is not BindingPattern.NAME:
        raise UnsupportedParameterPatternError(function, param.name, param.pattern.value)
    if param.annotation is None:
        raise MissingParameterTypeError(function, param.name)
    return SimpleParameter(param.name, param.annotation, param.node)


def check_collisions(fn: FunctionNode, params: Sequence[SimpleParameter], names: Sequence[str]):
    """Fail when a synthesized name repeats or shadows an existing type parameter."""
    taken = {tp.name for tp in fn.type_params}
    for param, name in zip(params, names):
        if name in taken:
            raise GenericNameCollisionError(fn.name, name, param.name)
        taken.add(name)


def _retyped(node: ast.arg, generic: str) -> ast.arg:
    new = ast.arg(
        arg=node.arg,
        annotation=ast.Name(id=generic, ctx=ast.Load()),
        type_comment=None,
    )
    return ast.copy_location(new, node)


def rewrite_signature(
    fn: FunctionNode,
    params: Sequence[SimpleParameter],
    names: Sequence[str],
    bounds: Sequence[ast.expr],
) -> List[ast.TypeVar]:
    """
    Replace each parameter's annotation with its synthesized generic and
    append the new type parameters after the existing ones.

    Returns the appended type parameters.
    """
    if not (len(params) == len(names) == len(bounds)):
        raise InternalInvariantError(
            f"{fn.name}: {len(params)} parameters, {len(names)} names, {len(bounds)} bounds"
        )

    # Phase (a): read-only mapping from original node to generic name.
    generic_for: Dict[int, str] = {id(p.node): name for p, name in zip(params, names)}

    # Phase (b): build the new argument lists.
    def rebuild(nodes: List[ast.arg]) -> List[ast.arg]:
        return [_retyped(n, generic_for.pop(id(n))) if id(n) in generic_for else n for n in nodes]

    arguments = fn.args
    posonlyargs = rebuild(arguments.posonlyargs)
    args = rebuild(arguments.args)
    kwonlyargs = rebuild(arguments.kwonlyargs)
    if generic_for:
        raise InternalInvariantError(
            f"{fn.name}: {len(generic_for)} parameter(s) not found in the signature"
        )

    # Phase (c): swap in.
    fn.args = ast.arguments(
        posonlyargs=posonlyargs,
        args=args,
        vararg=arguments.vararg,
        kwonlyargs=kwonlyargs,
        kw_defaults=arguments.kw_defaults,
        kwarg=arguments.kwarg,
        defaults=arguments.defaults,
    )
    generics = make_generic_parameters(names, bounds)
    fn.type_params = list(fn.type_params) + generics
    logger.debug("%s: appended generics %s", fn.name, ", ".join(names))
    return generics
