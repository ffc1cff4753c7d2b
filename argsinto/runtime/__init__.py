"""Runtime support referenced by rewritten functions."""

from argsinto.runtime.convert import (
    Into,
    into,
    register_conversion,
    unregister_conversion,
)
