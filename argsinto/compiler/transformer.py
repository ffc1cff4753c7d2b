"""
Args-Into Transformer
=====================

Rewrites a function so that every explicit parameter accepts anything
convertible into its declared type:

    def greet(name: str, times: int): ...

becomes

    def greet[__NAME: argsinto.Into[str], __TIMES: argsinto.Into[int]](
            name: __NAME, times: __TIMES):  # pylint: disable=invalid-name
        name = argsinto.into(name, str)
        times = argsinto.into(times, int)
        ...

Pipeline (one pass, data flows forward only):
1. Argument extraction   - receiver vs typed parameters
2. Validation            - simple names with annotations only
3. Name synthesis        - ``__NAME`` per parameter
4. Bound construction    - ``Into[T]`` per parameter
5. Signature rewrite     - annotations -> generics, generics appended
6. Prologue generation   - ``name = into(name, T)`` per parameter
7. Assembly              - prologue + original body, lint marker

The transformer works on ``ast`` nodes, on source text, on whole modules
(rewriting every function carrying the ``@args_into`` trigger) and on live
function objects.
"""

import __future__
import ast
import copy
import importlib
import inspect
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Set, Tuple, Union

from ..config import ArgsIntoConfig, DEFAULT_CONFIG
from ..errors import SourceUnavailableError, TriggerArgumentError, WrongItemKindError
from ..utils.source import annotate_def_lines, get_function_source, unparse_function
from .body import generate_prologue, prepend_prologue
from .generics import (
    check_collisions,
    make_bounds,
    require_simple,
    rewrite_signature,
    synthesize_names,
)
from .parameters import classify_parameters, extract_typed

logger = logging.getLogger(__name__)

FunctionNode = Union[ast.FunctionDef, ast.AsyncFunctionDef]

FACTORY_NAME = "__argsinto_factory__"

# Temporary def name given to rewritten functions in transform_module.
MARK_PREFIX = "__argsinto_rewritten_"


@dataclass
class TransformResult:
    """Outcome of rewriting one function definition."""
    node: FunctionNode
    generics: List[str] = field(default_factory=list)
    prologue: List[ast.stmt] = field(default_factory=list)
    lint_suppressions: Tuple[str, ...] = ()

    def to_source(self) -> str:
        return unparse_function(self.node, self.lint_suppressions)


class ArgsIntoTransformer:
    """
    Applies the args-into rewrite.

    Usage:
        >>> transformer = ArgsIntoTransformer()
        >>> print(transformer.transform_source('def f(x: int):\\n    return x'))
        def f[__X: argsinto.Into[int]](x: __X):  # pylint: disable=invalid-name
            x = argsinto.into(x, int)
            return x
    """

    def __init__(self, config: Optional[ArgsIntoConfig] = None, **overrides):
        config = config or DEFAULT_CONFIG
        self.config = config.replace(**overrides) if overrides else config
        self.stats = defaultdict(int)

    # ---- Single function ----

    def transform(self, node: ast.AST) -> TransformResult:
        """Rewrite one function definition. The input node is not modified."""
        if not isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            raise WrongItemKindError(type(node).__name__)

        fn = copy.deepcopy(node)
        config = self.config

        params = classify_parameters(fn.args, config)
        simple = [require_simple(p, fn.name) for p in extract_typed(params)]

        names = synthesize_names(simple, config)
        if config.check_collisions:
            check_collisions(fn, simple, names)
        bounds = make_bounds(simple, config)
        prologue = generate_prologue(simple, config)

        rewrite_signature(fn, simple, names, bounds)
        fn.body = prepend_prologue(fn.body, prologue)
        ast.fix_missing_locations(fn)

        self.stats['functions_transformed'] += 1
        self.stats['parameters_converted'] += len(simple)
        logger.debug(
            "rewrote %s: %d parameter(s), generics [%s]",
            fn.name, len(simple), ", ".join(names),
        )
        return TransformResult(fn, names, prologue, tuple(config.lint_suppressions))

    def transform_source(self, source: str) -> str:
        """Parse one function from ``source``, rewrite it and serialize it back."""
        tree = ast.parse(source)
        if len(tree.body) != 1:
            raise WrongItemKindError(f"source with {len(tree.body)} top-level items")
        node = tree.body[0]
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            index = self.trigger_index(node)
            if index is not None:
                del node.decorator_list[index]
        return self.transform(node).to_source()

    # ---- Trigger discovery ----

    def _is_trigger(self, decorator: ast.expr) -> bool:
        if isinstance(decorator, ast.Call):
            decorator = decorator.func
        if isinstance(decorator, ast.Name):
            return decorator.id in self.config.trigger_names
        if isinstance(decorator, ast.Attribute):
            return decorator.attr in self.config.trigger_names
        return False

    def trigger_index(self, node: FunctionNode) -> Optional[int]:
        """Position of the trigger decorator in ``node.decorator_list``, if any."""
        for index, decorator in enumerate(node.decorator_list):
            if self._is_trigger(decorator):
                return index
        return None

    def _for_trigger(self, decorator: ast.expr, function: str) -> 'ArgsIntoTransformer':
        """Transformer honouring keyword overrides given to a called trigger."""
        if not isinstance(decorator, ast.Call) or not decorator.keywords:
            return self
        overrides = {}
        for keyword in decorator.keywords:
            if keyword.arg is None or keyword.arg == 'enable_logging':
                continue
            try:
                overrides[keyword.arg] = ast.literal_eval(keyword.value)
            except (ValueError, TypeError, SyntaxError) as exc:
                raise TriggerArgumentError(function, keyword.arg, str(exc)) from exc
        return ArgsIntoTransformer(self.config, **overrides) if overrides else self

    # ---- Whole module ----

    def transform_module(self, source: str) -> str:
        """Rewrite every triggered function in ``source``; everything else is kept."""
        tree = ast.parse(source)
        rewriter = _TriggerRewriter(self)
        tree = rewriter.visit(tree)
        for module in reversed(rewriter.runtime_modules):
            self._ensure_runtime_import(tree, module)

        ast.fix_missing_locations(tree)
        return annotate_def_lines(ast.unparse(tree), rewriter.renames, self.config.lint_suppressions)

    @staticmethod
    def _ensure_runtime_import(tree: ast.Module, module: str):
        for stmt in tree.body:
            if isinstance(stmt, ast.Import) and any(
                alias.name == module and alias.asname is None for alias in stmt.names
            ):
                return
        position = 0
        for position, stmt in enumerate(tree.body):
            is_docstring = (
                position == 0 and isinstance(stmt, ast.Expr)
                and isinstance(stmt.value, ast.Constant) and isinstance(stmt.value.value, str)
            )
            is_future = isinstance(stmt, ast.ImportFrom) and stmt.module == '__future__'
            if not (is_docstring or is_future):
                break
        else:
            position = len(tree.body)
        tree.body.insert(position, ast.Import(names=[ast.alias(name=module)]))

    # ---- Live functions ----

    def transform_function(self, func: Callable) -> Callable:
        """
        Recompile a function with the rewrite applied.

        Decorators listed below the trigger are re-applied to the rewritten
        function; those above it are left for Python to apply to the result.
        """
        target = inspect.unwrap(func) if callable(func) else func
        if not inspect.isfunction(target):
            raise WrongItemKindError(type(func).__name__)
        if target.__name__ == '<lambda>':
            raise WrongItemKindError("lambda")
        if target.__code__.co_freevars:
            raise SourceUnavailableError(
                f"cannot recompile {target.__qualname__}: it closes over "
                f"{', '.join(target.__code__.co_freevars)}"
            )

        tree = ast.parse(get_function_source(target))
        node = self._find_function(tree, target.__name__)
        index = self.trigger_index(node)
        node.decorator_list = node.decorator_list[index + 1:] if index is not None else []

        result = self.transform(node)
        code = self._compile(result.node, target)
        namespace: Dict[str, Any] = {}
        exec(code, target.__globals__, namespace)
        importlib.import_module(self.config.runtime_module)
        root = importlib.import_module(self.config.runtime_module.split('.')[0])
        rewritten = namespace[FACTORY_NAME](root)

        rewritten.__qualname__ = target.__qualname__
        rewritten.__argsinto_original__ = target
        rewritten.__argsinto_generics__ = tuple(result.generics)
        rewritten.__argsinto_lint_suppressions__ = result.lint_suppressions
        return rewritten

    @staticmethod
    def _find_function(tree: ast.Module, name: str) -> FunctionNode:
        for stmt in tree.body:
            if isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef)) and stmt.name == name:
                return stmt
        raise SourceUnavailableError(f"no definition of {name!r} found in its source")

    def _compile(self, fn: FunctionNode, target: Callable):
        """
        Wrap ``fn`` in a factory taking the runtime module as an argument so the
        rewritten function keeps the real module globals.

        Methods are nested in a class named like their owner so private
        names are mangled the same way as in the original class body.
        """
        root = self.config.runtime_module.split('.')[0]
        qualname_parts = target.__qualname__.split('.')
        owner = qualname_parts[-2] if len(qualname_parts) > 1 else None

        if owner is not None and owner != '<locals>':
            holder = ast.ClassDef(
                name=owner, bases=[], keywords=[], body=[fn],
                decorator_list=[], type_params=[],
            )
            fetch = ast.Subscript(
                value=ast.Attribute(value=ast.Name(id=owner, ctx=ast.Load()),
                                    attr='__dict__', ctx=ast.Load()),
                slice=ast.Constant(value=fn.name),
                ctx=ast.Load(),
            )
            body: List[ast.stmt] = [holder, ast.Return(value=fetch)]
        else:
            body = [fn, ast.Return(value=ast.Name(id=fn.name, ctx=ast.Load()))]

        factory = ast.FunctionDef(
            name=FACTORY_NAME,
            args=ast.arguments(
                posonlyargs=[], args=[ast.arg(arg=root)], vararg=None,
                kwonlyargs=[], kw_defaults=[], kwarg=None, defaults=[],
            ),
            body=body,
            decorator_list=[],
            returns=None,
            type_params=[],
        )
        module = ast.Module(body=[factory], type_ignores=[])
        ast.fix_missing_locations(module)
        ast.increment_lineno(module, target.__code__.co_firstlineno - 1)
        return compile(
            module, target.__code__.co_filename, 'exec',
            flags=future_flags(target.__code__), dont_inherit=True,
        )


def future_flags(code) -> int:
    """Compiler flags of the ``__future__`` features active where ``code`` was compiled."""
    flags = 0
    for name in __future__.all_feature_names:
        flag = getattr(__future__, name).compiler_flag
        if code.co_flags & flag:
            flags |= flag
    return flags


class _TriggerRewriter(ast.NodeTransformer):
    """Rewrite every function carrying the trigger decorator, innermost first."""

    def __init__(self, transformer: ArgsIntoTransformer):
        self.transformer = transformer
        # placeholder def name -> original name
        self.renames: Dict[str, str] = {}
        self.runtime_modules: List[str] = []

    def _visit_function(self, node: FunctionNode) -> FunctionNode:
        self.generic_visit(node)
        index = self.transformer.trigger_index(node)
        if index is None:
            return node
        trigger = node.decorator_list.pop(index)
        transformer = self.transformer._for_trigger(trigger, node.name)
        result = transformer.transform(node)
        # Rewritten defs carry a placeholder name until serialized so that only
        # they receive the lint pragma; enclosing rewrites copy it along.
        placeholder = f"{MARK_PREFIX}{len(self.renames)}__"
        self.renames[placeholder] = result.node.name
        result.node.name = placeholder
        if transformer.config.runtime_module not in self.runtime_modules:
            self.runtime_modules.append(transformer.config.runtime_module)
        return result.node

    visit_FunctionDef = _visit_function
    visit_AsyncFunctionDef = _visit_function
