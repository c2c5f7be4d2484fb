"""Query compiler: turns parsed statements into execution plans.

Example
-------
::

    from provql.compiler import QueryCompiler
    from provql.parser import parse_statement

    plan = QueryCompiler("Neo4j", bound=set()).compile(
        parse_statement("g1 = getVertices(type:Process)")
    )
    assert plan.command == "query Neo4j vertices type:Process"
"""
from __future__ import annotations

from provql.compiler.compiler import (
    CompileError,
    DesugarPlan,
    LineageFanOut,
    LocalPlan,
    Plan,
    PrintPlan,
    QueryCompiler,
    RemoteRequest,
    remote_command,
)

__all__ = [
    "QueryCompiler",
    "CompileError",
    "Plan",
    "RemoteRequest",
    "LineageFanOut",
    "LocalPlan",
    "PrintPlan",
    "DesugarPlan",
    "remote_command",
]
