"""
Tests for the args-into transformer.

Validates:
  - Generic and parameter counts (M existing + N synthesized)
  - Bounds follow the original annotations in parameter order
  - Prologue precedes the untouched original body
  - Receivers are never rewritten
  - Failures abort without partial output
  - Source and whole-module entry points
"""

import ast
import textwrap
import pytest
from argsinto.compiler.transformer import MARK_PREFIX, ArgsIntoTransformer
from argsinto.compiler.parameters import classify_parameters, typed_names
from argsinto.errors import (
    ArgsIntoError,
    GenericNameCollisionError,
    TriggerArgumentError,
    UnsupportedParameterPatternError,
    WrongItemKindError,
)


# ---------- Test Functions ----------

PRINT_DETAILS = '''
def print_details(first_name: str, last_name: str, age: int):
    print(f"The first name is {first_name}, the last name is {last_name}, and the age is {age}")
'''

FOO_METHOD = '''
def foo_method(self, input: list[str]) -> int:
    input.insert(0, "some string operation")
    return len(input)
'''

GENERIC_FUNCTION = '''
def generic_function[T](string_input: str, other: T) -> T:
    use_string(string_input)
    return other
'''


def _function(source: str) -> ast.FunctionDef:
    return ast.parse(textwrap.dedent(source)).body[0]


class TestTransform:
    def setup_method(self):
        self.transformer = ArgsIntoTransformer()

    def test_print_details_scenario(self):
        original = _function(PRINT_DETAILS)
        result = self.transformer.transform(original)
        fn = result.node

        assert result.generics == ['__FIRST_NAME', '__LAST_NAME', '__AGE']
        assert [tp.name for tp in fn.type_params] == result.generics
        assert [ast.unparse(tp.bound) for tp in fn.type_params] == [
            'argsinto.Into[str]', 'argsinto.Into[str]', 'argsinto.Into[int]',
        ]
        assert [a.annotation.id for a in fn.args.args] == result.generics
        assert [ast.unparse(s) for s in fn.body[:3]] == [
            'first_name = argsinto.into(first_name, str)',
            'last_name = argsinto.into(last_name, str)',
            'age = argsinto.into(age, int)',
        ]
        assert ast.dump(fn.body[3]) == ast.dump(original.body[0])

    def test_method_scenario(self):
        result = self.transformer.transform(_function(FOO_METHOD))
        fn = result.node
        assert fn.args.args[0].arg == 'self'
        assert fn.args.args[0].annotation is None
        assert fn.args.args[1].annotation.id == '__INPUT'
        assert [ast.unparse(tp.bound) for tp in fn.type_params] == ['argsinto.Into[list[str]]']
        assert ast.unparse(fn.body[0]) == 'input = argsinto.into(input, list[str])'
        assert len(fn.body) == 3
        assert ast.unparse(fn.returns) == 'int'

    def test_generic_counts(self):
        original = _function(GENERIC_FUNCTION)
        fn = self.transformer.transform(original).node
        assert len(fn.type_params) == len(original.type_params) + 2
        assert fn.type_params[0].name == 'T'
        new_types = [a.annotation.id for a in fn.args.args]
        existing = {tp.name for tp in original.type_params}
        assert not existing & set(new_types)

    def test_body_suffix_unmodified(self):
        original = _function(GENERIC_FUNCTION)
        fn = self.transformer.transform(original).node
        n = 2
        assert [ast.dump(s) for s in fn.body[n:]] == [ast.dump(s) for s in original.body]

    def test_input_not_mutated(self):
        original = _function(PRINT_DETAILS)
        before = ast.dump(original)
        self.transformer.transform(original)
        assert ast.dump(original) == before

    def test_extraction_order_stable(self):
        original = _function(PRINT_DETAILS)
        fn = self.transformer.transform(original).node
        assert typed_names(classify_parameters(fn.args)) == \
            typed_names(classify_parameters(original.args))

    def test_receiver_only_is_noop(self):
        original = _function("def m(self):\n    return self")
        result = self.transformer.transform(original)
        assert result.node.type_params == []
        assert [ast.dump(s) for s in result.node.body] == [ast.dump(s) for s in original.body]
        assert result.generics == []

    def test_no_parameters_is_noop(self):
        original = _function("def f[T]():\n    return 1")
        fn = self.transformer.transform(original).node
        assert [tp.name for tp in fn.type_params] == ['T']
        assert len(fn.body) == 1

    def test_async_function(self):
        fn = self.transformer.transform(_function("async def f(x: int):\n    return x")).node
        assert isinstance(fn, ast.AsyncFunctionDef)
        assert fn.type_params[0].name == '__X'

    def test_lint_suppression(self):
        result = self.transformer.transform(_function("def f(x: int): pass"))
        assert result.lint_suppressions == ('invalid-name',)

    def test_stats(self):
        self.transformer.transform(_function(PRINT_DETAILS))
        assert self.transformer.stats['functions_transformed'] == 1
        assert self.transformer.stats['parameters_converted'] == 3


class TestTransformFailures:
    def setup_method(self):
        self.transformer = ArgsIntoTransformer()

    def test_wrong_item_kind(self):
        node = ast.parse("class Foo:\n    pass").body[0]
        with pytest.raises(WrongItemKindError) as info:
            self.transformer.transform(node)
        assert 'ClassDef' in str(info.value)

    def test_wrong_item_kind_is_type_error(self):
        with pytest.raises(TypeError):
            self.transformer.transform(ast.parse("x = 1").body[0])

    def test_variadic_aborts_whole_function(self):
        original = _function("def f(a: int, *rest: int):\n    return a")
        before = ast.dump(original)
        with pytest.raises(UnsupportedParameterPatternError):
            self.transformer.transform(original)
        assert ast.dump(original) == before
        assert self.transformer.stats['functions_transformed'] == 0

    def test_collision_detected(self):
        with pytest.raises(GenericNameCollisionError):
            self.transformer.transform(_function("def f(name: str, NAME: str): pass"))

    def test_collision_check_disabled(self):
        transformer = ArgsIntoTransformer(check_collisions=False)
        fn = transformer.transform(_function("def f(name: str, NAME: str): pass")).node
        assert [tp.name for tp in fn.type_params] == ['__NAME', '__NAME']


class TestTransformSource:
    def setup_method(self):
        self.transformer = ArgsIntoTransformer()

    def test_exact_output(self):
        out = self.transformer.transform_source("def f(x: int):\n    return x")
        assert out == (
            "def f[__X: argsinto.Into[int]](x: __X):  # pylint: disable=invalid-name\n"
            "    x = argsinto.into(x, int)\n"
            "    return x\n"
        )

    def test_trigger_stripped(self):
        out = self.transformer.transform_source(
            "@args_into\n@other\ndef f(x: int):\n    return x")
        assert '@args_into' not in out
        assert '@other' in out

    def test_output_reparses(self):
        out = self.transformer.transform_source(textwrap.dedent(PRINT_DETAILS))
        fn = ast.parse(out).body[0]
        assert len(fn.type_params) == 3

    def test_rejects_multiple_items(self):
        with pytest.raises(WrongItemKindError):
            self.transformer.transform_source("def f(): pass\ndef g(): pass")

    def test_rejects_non_function(self):
        with pytest.raises(WrongItemKindError):
            self.transformer.transform_source("x = 1")


MODULE = '''
"""Module docstring."""
from __future__ import annotations

import functools
from argsinto import args_into


@args_into
def greet(name: str, times: int) -> str:
    return name * times


@functools.lru_cache
@args_into(prefix='_T_')
def scaled(value: float) -> float:
    return value * 2


def plain(x: int) -> int:
    return x


class Counter:
    def __init__(self):
        self.total = 0

    @args_into
    def add(self, amount: int) -> int:
        self.total += amount
        return self.total
'''


class TestTransformModule:
    def setup_method(self):
        self.transformer = ArgsIntoTransformer()
        self.output = self.transformer.transform_module(MODULE)
        self.tree = ast.parse(self.output)

    def _find(self, name):
        for node in ast.walk(self.tree):
            if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)) and node.name == name:
                return node
        raise AssertionError(name)

    def test_triggered_functions_rewritten(self):
        assert [tp.name for tp in self._find('greet').type_params] == ['__NAME', '__TIMES']
        assert [tp.name for tp in self._find('add').type_params] == ['__AMOUNT']

    def test_untriggered_untouched(self):
        plain = self._find('plain')
        assert plain.type_params == []
        assert ast.unparse(plain.args.args[0].annotation) == 'int'
        assert self._find('__init__').type_params == []

    def test_trigger_removed_others_kept(self):
        assert self._find('greet').decorator_list == []
        decorators = [ast.unparse(d) for d in self._find('scaled').decorator_list]
        assert decorators == ['functools.lru_cache']

    def test_trigger_overrides(self):
        assert [tp.name for tp in self._find('scaled').type_params] == ['_T_VALUE']

    def test_runtime_import_inserted_after_future(self):
        body = self.tree.body
        assert isinstance(body[0], ast.Expr)
        assert isinstance(body[1], ast.ImportFrom) and body[1].module == '__future__'
        assert isinstance(body[2], ast.Import) and body[2].names[0].name == 'argsinto'

    def test_pragma_on_rewritten_defs_only(self):
        lines = self.output.splitlines()
        marked = [line.strip() for line in lines if 'pylint: disable=invalid-name' in line]
        assert len(marked) == 3
        assert all(line.startswith('def ') for line in marked)
        assert not any('def plain' in line for line in marked)

    def test_module_runs(self):
        namespace = {}
        exec(compile(self.output, '<test-module>', 'exec'), namespace)
        assert namespace['greet']('ab', '2') == 'abab'
        assert namespace['scaled'](3) == 6.0
        counter = namespace['Counter']()
        counter.add('5')
        assert counter.add(2.0) == 7

    def test_existing_import_not_duplicated(self):
        out = self.transformer.transform_module(
            "import argsinto\n\n@argsinto.args_into\ndef f(x: int):\n    return x\n")
        assert out.count('import argsinto') == 1

    def test_module_without_trigger_unchanged(self):
        source = "def f(x: int):\n    return x\n"
        out = self.transformer.transform_module(source)
        assert 'import argsinto' not in out
        assert ast.dump(ast.parse(out)) == ast.dump(ast.parse(source))


class TestTransformModuleMarking:
    def setup_method(self):
        self.transformer = ArgsIntoTransformer()

    def _marked(self, out):
        return [line.strip() for line in out.splitlines() if 'pylint: disable=invalid-name' in line]

    def test_same_name_untriggered_not_marked(self):
        source = textwrap.dedent('''
            class A:
                def __init__(self):
                    self.x = 0

            class B:
                @args_into
                def __init__(self, x: int):
                    self.x = x
        ''')
        out = self.transformer.transform_module(source)
        marked = self._marked(out)
        assert marked == [
            'def __init__[__X: argsinto.Into[int]](self, x: __X):  # pylint: disable=invalid-name',
        ]
        assert 'def __init__(self):' in out

    def test_nested_rewrites_marked_with_original_names(self):
        source = textwrap.dedent('''
            @args_into
            def outer(a: int):
                @args_into
                def inner(b: str):
                    return b
                return inner(a)
        ''')
        out = self.transformer.transform_module(source)
        marked = self._marked(out)
        assert len(marked) == 2
        assert marked[0].startswith('def outer[__A:')
        assert marked[1].startswith('def inner[__B:')
        assert MARK_PREFIX not in out

    def test_trigger_runtime_module_imported(self):
        source = textwrap.dedent('''
            @args_into(runtime_module='convlib')
            def f(x: int):
                return x

            @args_into
            def g(y: int):
                return y
        ''')
        out = self.transformer.transform_module(source)
        tree = ast.parse(out)
        imports = [stmt.names[0].name for stmt in tree.body if isinstance(stmt, ast.Import)]
        assert imports == ['convlib', 'argsinto']
        assert 'x = convlib.into(x, int)' in out

    def test_non_literal_trigger_keyword(self):
        source = "@args_into(prefix=make_prefix())\ndef scale(value: float):\n    return value\n"
        with pytest.raises(TriggerArgumentError) as info:
            self.transformer.transform_module(source)
        assert info.value.function == 'scale'
        assert info.value.keyword == 'prefix'
        assert isinstance(info.value, ArgsIntoError)
