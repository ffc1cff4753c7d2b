"""AST rewrite pipeline: extraction, generic synthesis, prologue, assembly."""

from argsinto.compiler.transformer import ArgsIntoTransformer, TransformResult
