"""
Conversion Capability
=====================

Runtime support for code emitted by the transformer. Rewritten functions
bound their generics with ``Into[T]`` and open with ``x = into(x, T)``.

Resolution order for ``into(value, target)``:

1. ``Any``, or ``value`` already an instance of the target's runtime class
2. unions: a member that already accepts the value, else the first member
   the value converts into, in declaration order
3. a converter registered for (type of value or a base class, target)
4. the value's ``__into__(target)`` hook, unless it returns NotImplemented
5. ``target(value)`` for a concrete class target
"""

import logging
import types
from typing import (
    Annotated, Any, Callable, Dict, ForwardRef, Literal, Protocol, Tuple,
    TypeVar, Union, get_args, get_origin,
)

from ..errors import ConversionError

logger = logging.getLogger(__name__)

T_co = TypeVar('T_co', covariant=True)


class Into(Protocol[T_co]):
    """Types that can convert themselves into ``T_co``."""

    def __into__(self, target: Any) -> T_co:
        ...


_registry: Dict[Tuple[type, Any], Callable[[Any], Any]] = {}


def register_conversion(source: type, target: Any) -> Callable:
    """
    Register a converter from ``source`` (and its subclasses) into ``target``.

    Usage:
        >>> @register_conversion(Celsius, float)
        ... def celsius_to_float(value):
        ...     return value.degrees
    """
    def decorator(func: Callable[[Any], Any]) -> Callable[[Any], Any]:
        _registry[(source, target)] = func
        return func
    return decorator


def unregister_conversion(source: type, target: Any) -> bool:
    """Remove a registered converter; returns whether one was registered."""
    return _registry.pop((source, target), None) is not None


def _is_union(target: Any) -> bool:
    return get_origin(target) in (Union, types.UnionType)


def _runtime_class(target: Any):
    if target is None:
        return types.NoneType
    origin = get_origin(target)
    cls = origin if origin is not None else target
    return cls if isinstance(cls, type) else None


def _accepts(value: Any, target: Any) -> bool:
    if target is Any:
        return True
    if _is_union(target):
        return any(_accepts(value, member) for member in get_args(target))
    cls = _runtime_class(target)
    return cls is not None and isinstance(value, cls)


def _registered(value: Any, target: Any, cls: type):
    for klass in type(value).__mro__:
        converter = _registry.get((klass, target))
        if converter is None and cls is not target:
            converter = _registry.get((klass, cls))
        if converter is not None:
            return converter
    return None


def into(value: Any, target: Any) -> Any:
    """Convert ``value`` into ``target``; raises ConversionError on failure."""
    if isinstance(target, (str, ForwardRef)):
        raise ConversionError(value, target, "forward references cannot be resolved at call time")

    origin = get_origin(target)
    if origin is Annotated:
        return into(value, get_args(target)[0])
    if origin is Literal:
        if value in get_args(target):
            return value
        raise ConversionError(value, target, "value is not one of the literal options")

    if _accepts(value, target):
        return value

    if _is_union(target):
        for member in get_args(target):
            try:
                return into(value, member)
            except ConversionError:
                continue
        raise ConversionError(value, target, "no union member accepts the value")

    cls = _runtime_class(target)
    if cls is None:
        raise ConversionError(value, target, "target is not a class")

    converter = _registered(value, target, cls)
    if converter is not None:
        logger.debug("into: registered converter %s for %s", converter.__name__, type(value).__name__)
        return converter(value)

    hook = getattr(type(value), '__into__', None)
    if hook is not None:
        result = hook(value, target)
        if result is not NotImplemented:
            return result

    if cls is types.NoneType:
        raise ConversionError(value, target)
    try:
        return cls(value)
    except (TypeError, ValueError) as exc:
        raise ConversionError(value, target, str(exc)) from exc
