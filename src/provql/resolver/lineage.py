"""Distributed lineage resolver.

When a lineage query's origin names a bound graph, the lineage of every
vertex in that graph is requested from the query service and the partial
results are unioned.  Requests are strictly sequential: the channel has
no request identifiers, so each response is read before the next request
is sent.  Vertices are visited in id order, which makes the order of
inline messages reproducible.
"""
from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from provql.compiler.compiler import LineageFanOut
from provql.graph.model import Graph
from provql.protocol.channel import Channel, ResponseKind

logger = logging.getLogger(__name__)


class FanOutAbortedError(RuntimeError):
    """Raised when a lineage fan-out stopped early and produced no graph."""


class FanOutPolicy(Enum):
    """What to do when one vertex's request yields a message instead of a graph."""

    CONTINUE = "continue"
    ABORT = "abort"


@dataclass
class FanOutResult:
    """Outcome of one fan-out.

    Parameters
    ----------
    graph:
        Union of every graph response; ``None`` if the fan-out was aborted.
    requests:
        Number of requests sent.
    messages:
        Terminal messages received, in request order.
    skipped:
        Ids of vertices with no store-identifier annotation.
    elapsed_ms:
        Wall-clock time spent, in milliseconds.
    """

    graph: Graph | None
    requests: int = 0
    messages: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    elapsed_ms: int = 0

    @property
    def aborted(self) -> bool:
        return self.graph is None


class DistributedLineageResolver:
    """Scatter lineage requests over a bound graph's vertices and union the results.

    Parameters
    ----------
    channel:
        The session's transport channel.
    identifier_key:
        Vertex annotation holding the store-native vertex identifier.
    policy:
        How terminal messages affect the rest of the fan-out.
    """

    def __init__(
        self,
        channel: Channel,
        identifier_key: str,
        policy: FanOutPolicy = FanOutPolicy.CONTINUE,
    ) -> None:
        self._channel = channel
        self._identifier_key = identifier_key
        self._policy = policy

    def resolve(
        self,
        source: Graph,
        plan: LineageFanOut,
        on_message: Callable[[str], None] = lambda message: None,
    ) -> FanOutResult:
        """Run the fan-out for ``plan`` over the vertices of ``source``.

        ``on_message`` is called with each terminal message (and each
        skipped-vertex notice) as soon as it arrives.
        """
        began = time.monotonic()
        result = FanOutResult(graph=Graph())
        accumulated = Graph()

        for vertex in sorted(source.vertex_set(), key=lambda v: v.id):
            store_id = vertex.get_annotation(self._identifier_key)
            if store_id is None:
                result.skipped.append(vertex.id)
                on_message(
                    f"Vertex {vertex.id} has no {self._identifier_key!r} annotation; skipped"
                )
                continue

            response = self._channel.request(plan.command_for(store_id))
            result.requests += 1
            if response.kind is ResponseKind.GRAPH:
                accumulated = Graph.union(accumulated, response.graph)
                continue

            result.messages.append(response.message)
            on_message(response.message)
            if self._policy is FanOutPolicy.ABORT:
                logger.debug("Fan-out aborted at vertex %s", vertex.id)
                result.graph = None
                break
        else:
            result.graph = accumulated

        result.elapsed_ms = int((time.monotonic() - began) * 1000)
        logger.debug(
            "Fan-out over %r: %d request(s), %d message(s), %d skipped in %d ms",
            plan.source,
            result.requests,
            len(result.messages),
            len(result.skipped),
            result.elapsed_ms,
        )
        return result
