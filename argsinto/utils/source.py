"""Source retrieval and serialization helpers."""

import ast
import inspect
import re
import textwrap
from typing import Callable, Mapping, Sequence

from ..errors import SourceUnavailableError

_DEF_LINE = re.compile(r'^\s*(?:async\s+)?def\s+(\w+)\b')


def lint_pragma(suppressions: Sequence[str]) -> str:
    return f"# pylint: disable={','.join(suppressions)}"


def annotate_def_lines(source: str, renames: Mapping[str, str], suppressions: Sequence[str]) -> str:
    """
    Restore every ``def`` named by a key of ``renames`` to the mapped name and
    append the lint pragma to its line. Other ``def`` lines are left alone.
    """
    if not renames:
        return source
    pragma = f"  {lint_pragma(suppressions)}" if suppressions else ""
    lines = []
    for line in source.splitlines():
        match = _DEF_LINE.match(line)
        if match and match.group(1) in renames:
            line = f"{line[:match.start(1)]}{renames[match.group(1)]}{line[match.end(1):]}{pragma}"
        lines.append(line)
    return "\n".join(lines) + "\n"


def unparse_function(node: ast.AST, suppressions: Sequence[str] = ()) -> str:
    """Serialize one function definition, marking its ``def`` line."""
    return annotate_def_lines(ast.unparse(node), {node.name: node.name}, suppressions)


def get_function_source(func: Callable) -> str:
    """Return the dedented source of ``func``."""
    try:
        return textwrap.dedent(inspect.getsource(func))
    except (OSError, TypeError) as exc:
        raise SourceUnavailableError(
            f"cannot retrieve the source of {getattr(func, '__qualname__', func)!r}: {exc}"
        ) from exc
