"""Query compiler: turns a parsed ``Statement`` into an execution plan.

A plan says *where* a query runs, never runs it:

* ``RemoteRequest``   one wire command for the remote query service
* ``LineageFanOut``   one lineage request per vertex of a bound graph
* ``LocalPlan``       composition against a bound graph, no remote call
* ``PrintPlan``       render a bound graph's annotations
* ``DesugarPlan``     two statements to run in sequence (getChildren/getParents)

The contract for :meth:`QueryCompiler.compile` mirrors a compilation
target's: it is pure (no I/O) and deterministic for a given storage
selector and set of bound names.  Unbound references are detected here,
so a plan that reaches the dispatcher never names a missing graph.
"""
from __future__ import annotations

from collections.abc import Container
from dataclasses import dataclass
from typing import Union

from provql.ast.nodes import (
    Direction,
    GetChildren,
    GetEdges,
    GetLineage,
    GetParents,
    GetPaths,
    GetVertices,
    PrintGraph,
    Statement,
)
from provql.environment.environment import UnboundNameError


class CompileError(ValueError):
    """Raised when a well-formed statement cannot be executed as written."""


# ---------------------------------------------------------------------------
# Plans
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RemoteRequest:
    """Send ``command`` to the query service and bind the response."""

    statement: Statement
    command: str


@dataclass(frozen=True)
class LineageFanOut:
    """Issue one lineage request per vertex of the bound graph ``source``.

    ``command_prefix`` and ``command_suffix`` surround the vertex's store
    identifier in each request.
    """

    statement: Statement
    source: str
    command_prefix: str
    command_suffix: str

    def command_for(self, store_id: str) -> str:
        """Return the lineage command for one vertex."""
        return f"{self.command_prefix} {store_id} {self.command_suffix}"


@dataclass(frozen=True)
class LocalPlan:
    """Run the statement's query against the bound graph ``target``."""

    statement: Statement
    target: str


@dataclass(frozen=True)
class PrintPlan:
    """Print the annotations of the bound graph ``target``."""

    target: str
    annotations: tuple[str, ...]


@dataclass(frozen=True)
class DesugarPlan:
    """Run ``steps`` through the dispatcher, one after another."""

    steps: tuple[str, ...]


Plan = Union[RemoteRequest, LineageFanOut, LocalPlan, PrintPlan, DesugarPlan]


# ---------------------------------------------------------------------------
# Wire commands
# ---------------------------------------------------------------------------


def remote_command(storage: str, verb: str, *args: object) -> str:
    """Build ``query <storage> <verb> <args...>``."""
    parts = ["query", storage, verb, *(str(a) for a in args)]
    return " ".join(parts)


# ---------------------------------------------------------------------------
# Compiler
# ---------------------------------------------------------------------------


class QueryCompiler:
    """Compiles statements against the current session state.

    Parameters
    ----------
    storage:
        The storage selector remote requests are routed to.
    bound:
        The names currently bound in the binding environment.
    """

    def __init__(self, storage: str, bound: Container[str]) -> None:
        self._storage = storage
        self._bound = bound

    def compile(self, statement: Statement) -> Plan:
        """Compile ``statement`` into a plan.

        Raises
        ------
        UnboundNameError
            If the statement references a graph that is not bound.
        CompileError
            If the form cannot run where it was addressed.
        """
        query = statement.query

        if isinstance(query, PrintGraph):
            # the parser guarantees print always has a target
            target = self._require(statement.target or "")
            return PrintPlan(target=target, annotations=query.annotations)

        if isinstance(query, (GetChildren, GetParents)):
            return self._desugar(statement)

        if statement.target is not None:
            return self._local(statement)

        if isinstance(query, GetVertices):
            return RemoteRequest(statement, remote_command(self._storage, "vertices", query.expression))
        if isinstance(query, GetEdges):
            return RemoteRequest(statement, remote_command(self._storage, "edges", query.expression))
        if isinstance(query, GetPaths):
            return RemoteRequest(
                statement,
                remote_command(
                    self._storage, "paths", query.source, query.destination, query.max_length
                ),
            )
        if isinstance(query, GetLineage):
            return self._lineage(statement, query)
        raise TypeError(f"Unknown query node: {type(query).__name__}")

    # ------------------------------------------------------------------
    # Form-specific helpers
    # ------------------------------------------------------------------

    def _require(self, name: str) -> str:
        if name not in self._bound:
            raise UnboundNameError(name)
        return name

    def _lineage(self, statement: Statement, query: GetLineage) -> Plan:
        tail = f"{query.depth} {query.direction.value} {query.termination}"
        if query.origin_is_name:
            source = self._require(str(query.origin))
            return LineageFanOut(
                statement=statement,
                source=source,
                command_prefix=remote_command(self._storage, "lineage"),
                command_suffix=tail,
            )
        return RemoteRequest(
            statement, remote_command(self._storage, "lineage", query.origin) + " " + tail
        )

    def _local(self, statement: Statement) -> LocalPlan:
        target = self._require(statement.target or "")
        query = statement.query
        if isinstance(query, GetEdges):
            raise CompileError(f"getEdges(...) is not supported on bound graph {target}")
        if isinstance(query, GetLineage) and query.origin_is_name:
            raise CompileError(
                f"getLineage(...) on bound graph {target} needs a vertex id, not {query.origin!r}"
            )
        return LocalPlan(statement=statement, target=target)

    def _desugar(self, statement: Statement) -> DesugarPlan:
        query = statement.query
        target = self._require(statement.target or "")
        result = statement.result
        direction = (
            Direction.DESCENDANTS if isinstance(query, GetChildren) else Direction.ANCESTORS
        )
        return DesugarPlan(
            steps=(
                f"{result} = getLineage({target}, 1, {direction.value})",
                f"{result} = {result}.getVertices({query.expression})",
            )
        )
