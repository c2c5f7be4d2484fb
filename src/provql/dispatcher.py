"""Command dispatcher: the REPL state machine.

States::

    READY --line--> EXECUTING --done--> READY
                              --exit--> CLOSED

Control commands are recognised before anything reaches the parser:

* ``exit``                 send ``exit`` to the service and close
* ``list``                 table of bound names and their expressions
* ``storage <name>``       change the storage selector
* ``export <name> <path>`` write a bound graph to a file

Every other line is parsed, compiled and executed.  A line that is not a
query is a silent no-op.  A failing command is reported and the
dispatcher returns to READY; only ``exit`` or loss of the connection
closes it.
"""
from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from enum import Enum, auto

from rich.console import Console
from rich.table import Table
from rich.text import Text

from provql.ast.nodes import GetLineage, GetPaths, GetVertices, Statement
from provql.compiler.compiler import (
    CompileError,
    DesugarPlan,
    LineageFanOut,
    LocalPlan,
    Plan,
    PrintPlan,
    RemoteRequest,
)
from provql.environment.environment import UnboundNameError
from provql.graph.model import Graph
from provql.parser.errors import ParseError
from provql.parser.parser import parse_statement
from provql.protocol.channel import EXIT_COMMAND, ResponseKind
from provql.protocol.errors import ChannelClosedError, ProtocolError
from provql.resolver.lineage import FanOutAbortedError
from provql.session import Session

logger = logging.getLogger(__name__)


class DispatcherState(Enum):
    """Lifecycle of the command loop."""

    READY = auto()
    EXECUTING = auto()
    CLOSED = auto()


class Dispatcher:
    """Interprets REPL input lines against one session.

    Parameters
    ----------
    session:
        The connected session commands run against.
    console:
        Where results are printed.
    err_console:
        Where errors are printed; defaults to ``console``.
    """

    def __init__(
        self,
        session: Session,
        console: Console | None = None,
        err_console: Console | None = None,
    ) -> None:
        self.session = session
        self.console = console or Console()
        self.err_console = err_console or self.console
        self.state = DispatcherState.READY

    @property
    def closed(self) -> bool:
        return self.state is DispatcherState.CLOSED

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def run(self, read_line: Callable[[], str | None]) -> None:
        """Read and execute lines until ``exit``; ``None`` from ``read_line`` means ``exit``."""
        while not self.closed:
            line = read_line()
            self.execute(EXIT_COMMAND if line is None else line)

    def execute(self, line: str) -> bool:
        """Execute one input line; return True if it completed without error."""
        if self.closed:
            raise RuntimeError("dispatcher is closed")
        self.state = DispatcherState.EXECUTING
        try:
            self._execute(line)
            return True
        except ChannelClosedError as exc:
            self._error(f"connection to the query service lost: {exc}")
            self.state = DispatcherState.CLOSED
        except (
            ParseError, CompileError, UnboundNameError, ProtocolError, FanOutAbortedError
        ) as exc:
            self._error(str(exc))
        except (ValueError, KeyError, OSError) as exc:
            logger.debug("Command %r failed", line, exc_info=True)
            self._error(str(exc))
        finally:
            if self.state is DispatcherState.EXECUTING:
                self.state = DispatcherState.READY
        return False

    # ------------------------------------------------------------------
    # Command resolution
    # ------------------------------------------------------------------

    def _execute(self, line: str) -> None:
        stripped = line.strip()
        words = stripped.split()

        if stripped == EXIT_COMMAND:
            self.session.channel.send(EXIT_COMMAND)
            self.state = DispatcherState.CLOSED
            return
        if stripped == "list":
            self._list()
            return
        if words and words[0] == "storage" and words[1:2] != ["="]:
            if len(words) != 2:
                raise ValueError("usage: storage <name>")
            self.session.set_storage(words[1])
            return
        if words and words[0] == "export" and words[1:2] != ["="]:
            if len(words) != 3:
                raise ValueError("usage: export <graph> <path>")
            self._export(words[1], words[2])
            return

        statement = parse_statement(line)
        if statement is None:
            logger.debug("Ignoring unrecognised line %r", line)
            return
        plan = self.session.compiler().compile(statement)
        self._run_plan(plan)

    def _run_plan(self, plan: Plan) -> None:
        if isinstance(plan, RemoteRequest):
            self._remote(plan)
        elif isinstance(plan, LineageFanOut):
            self._fan_out(plan)
        elif isinstance(plan, LocalPlan):
            self._local(plan)
        elif isinstance(plan, PrintPlan):
            self._print_graph(self.session.environment.graph(plan.target), plan.annotations)
        elif isinstance(plan, DesugarPlan):
            for step in plan.steps:
                logger.debug("Expanded step: %s", step)
                self._execute(step)
        else:
            raise TypeError(f"Unknown plan: {type(plan).__name__}")

    # ------------------------------------------------------------------
    # Plan execution
    # ------------------------------------------------------------------

    def _remote(self, plan: RemoteRequest) -> None:
        began = time.monotonic()
        response = self.session.channel.request(plan.command)
        if response.kind is ResponseKind.GRAPH:
            self._deliver(plan.statement, response.graph)
        else:
            self._message(response.message)
        self._timing(began)

    def _fan_out(self, plan: LineageFanOut) -> None:
        source = self.session.environment.graph(plan.source)
        result = self.session.lineage_resolver().resolve(source, plan, on_message=self._message)
        self.console.print(f"Time taken for query: {result.elapsed_ms} ms")
        if result.graph is None:
            raise FanOutAbortedError(f"lineage of {plan.source} aborted; nothing bound")
        self._deliver(plan.statement, result.graph)

    def _local(self, plan: LocalPlan) -> None:
        graph = self.session.environment.graph(plan.target)
        query = plan.statement.query
        if isinstance(query, GetVertices):
            result = graph.get_vertices(query.expression)
        elif isinstance(query, GetPaths):
            result = graph.get_paths(query.source, query.destination, query.max_length)
        elif isinstance(query, GetLineage):
            result = graph.get_lineage(
                query.origin, query.depth, query.direction, query.terminating_expression
            )
        else:
            raise CompileError(f"{type(query).__name__} cannot run on a bound graph")
        self._deliver(plan.statement, result)

    def _deliver(self, statement: Statement, graph: Graph) -> None:
        """Bind ``graph`` to the statement's result, or summarise it if unassigned."""
        if statement.result is not None:
            self.session.environment.bind(statement.result, graph, statement.expression)
        else:
            self.console.print(
                f"{len(graph.vertex_set())} vertices, {len(graph.edge_set())} edges (not bound)"
            )

    # ------------------------------------------------------------------
    # Control commands
    # ------------------------------------------------------------------

    def _list(self) -> None:
        table = Table(show_lines=False)
        table.add_column("Graph", style="bold")
        table.add_column("Expression")
        for name, expression in self.session.environment.entries():
            table.add_row(Text(name), Text(expression))
        self.console.print(table)

    def _export(self, name: str, path: str) -> None:
        env = self.session.environment
        graph = env.graph(name)
        logger.debug("Exporting %s (%s) to %s", name, env.expression(name), path)
        graph.export_graph(path)
        self.console.print(Text(f"Exported {name} to {path}"))

    # ------------------------------------------------------------------
    # Output helpers
    # ------------------------------------------------------------------

    def _print_graph(self, graph: Graph, keys: tuple[str, ...]) -> None:
        wanted = set(keys)
        vertices = sorted(graph.vertex_set(), key=lambda v: v.id)
        edges = sorted(graph.edge_set(), key=lambda e: (e.source, e.destination, e.key))

        self.console.print(f"Total Vertices : {len(vertices)}\n")
        for vertex in vertices:
            self._print_annotations(vertex.annotations, wanted)
        self.console.print(f"\n\nTotal Edges : {len(edges)}\n")
        for edge in edges:
            self._print_annotations(edge.annotations, wanted)

    def _print_annotations(self, annotations: Mapping[str, str], wanted: set[str]) -> None:
        for key, value in annotations.items():
            if not wanted or key in wanted:
                self.console.print(Text(f"\t{key} : {value}"))
        self.console.print()

    def _message(self, message: str) -> None:
        self.console.print(Text(message + "\n"))

    def _timing(self, began: float) -> None:
        elapsed = int((time.monotonic() - began) * 1000)
        self.console.print(f"Time taken for query: {elapsed} ms")

    def _error(self, message: str) -> None:
        self.err_console.print(Text.assemble(("Error: ", "bold red"), message))
