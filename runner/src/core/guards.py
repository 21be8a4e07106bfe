"""
Guard builders for steps and stages.
"""

from typing import Any

from runner.src.core.context import ExecutionContext, stringify

def param_is(name: str, expected: Any = True):
    """True when parameter ``name`` equals ``expected``. Unset parameters never match."""
    def guard(ctx: ExecutionContext) -> bool:
        if name not in ctx.params:
            return False
        return stringify(ctx.params[name]) == stringify(expected)
    return guard

def file_exists(path: str):
    """True when ``path`` (relative to the workspace) exists."""
    def guard(ctx: ExecutionContext) -> bool:
        return (ctx.workspace / ctx.render(path)).exists()
    return guard

def all_of(*guards):
    def guard(ctx: ExecutionContext) -> bool:
        return all(g(ctx) for g in guards)
    return guard
