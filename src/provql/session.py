"""Session context: everything one connected query session owns.

A session ties together the transport channel, the binding environment
and the storage selector.  Nothing here is process-global; two sessions
never share client-side state.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from provql.compiler.compiler import QueryCompiler
from provql.config.settings import Settings
from provql.environment.environment import BindingEnvironment
from provql.protocol.channel import Channel
from provql.resolver.lineage import DistributedLineageResolver, FanOutPolicy

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """State of one connected session.

    Parameters
    ----------
    channel:
        Transport channel, created once per session and never recreated.
    settings:
        Configuration the session was opened with.
    environment:
        Named query results.
    storage:
        Storage selector for remote requests; starts at ``settings.storage``
        and changes only through ``set_storage``.
    """

    channel: Channel
    settings: Settings = field(default_factory=Settings)
    environment: BindingEnvironment = field(default_factory=BindingEnvironment)
    storage: str = ""

    def __post_init__(self) -> None:
        if not self.storage:
            self.storage = self.settings.storage

    def set_storage(self, name: str) -> None:
        logger.debug("Storage selector %r -> %r", self.storage, name)
        self.storage = name

    def compiler(self) -> QueryCompiler:
        """Return a compiler bound to the current storage selector and names."""
        return QueryCompiler(self.storage, self.environment)

    def lineage_resolver(self) -> DistributedLineageResolver:
        return DistributedLineageResolver(
            self.channel,
            identifier_key=self.settings.storage_identifier_key,
            policy=FanOutPolicy(self.settings.fan_out_policy),
        )
