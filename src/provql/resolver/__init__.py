"""Distributed lineage resolver module."""
from __future__ import annotations

from provql.resolver.lineage import (
    DistributedLineageResolver,
    FanOutAbortedError,
    FanOutPolicy,
    FanOutResult,
)

__all__ = ["DistributedLineageResolver", "FanOutAbortedError", "FanOutPolicy", "FanOutResult"]
