"""Binding environment module."""
from __future__ import annotations

from provql.environment.environment import BindingEnvironment, UnboundNameError

__all__ = ["BindingEnvironment", "UnboundNameError"]
