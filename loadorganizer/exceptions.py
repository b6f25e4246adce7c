"""
Errors raised while building a load order.

All of them derive from resolvelib's ResolutionError so a caller catching
ResolverException (as the batch runner does) handles them in one place.
"""

from __future__ import annotations

from typing import Dict, Iterable, Tuple

from resolvelib.resolvers import ResolutionError

from loadorganizer.structures import Module


class LoadOrderError(ResolutionError):
    """Base class for every load order failure."""


class UnregisteredCapability(LoadOrderError):
    def __init__(self, capability: str):
        super().__init__(
            f"Invalid argument [{capability}]. There is no registered module providing the given id."
        )
        self.capability = capability


class UnresolvableIds(LoadOrderError):
    def __init__(self, ids: Iterable[str]):
        self.ids: Tuple[str, ...] = tuple(ids)
        super().__init__(
            "Unable to resolve requested modules. Missing ids: %s" % ", ".join(self.ids)
        )


class CircularReference(LoadOrderError):
    """Modules that can never be scheduled because each waits for the next."""

    def __init__(self, modules: Iterable[Module]):
        modules = tuple(modules)
        self.modules: Tuple[str, ...] = tuple(m.source for m in modules)
        self.requirements: Dict[str, Tuple[str, ...]] = {m.source: m.requires for m in modules}
        chain = " requiring ".join(
            f"{m.source} ({', '.join(m.requires)})" for m in modules
        )
        super().__init__(f"Circular reference detected: {chain}")


class GraphFrozen(LoadOrderError):
    def __init__(self, source: str):
        super().__init__(f"Cannot register {source!r}: the capability graph is frozen.")
        self.source = source


class DescriptorError(LoadOrderError):
    """A module descriptor is malformed."""
