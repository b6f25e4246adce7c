"""
Compound substitution: replace runs of simple modules in a finished load order
with a bundle providing the same ids, wherever every module keeps its
requirements satisfied by something loaded before it.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

from loadorganizer.graph import CapabilityGraph
from loadorganizer.structures import Module, unique

logger = logging.getLogger(__name__)


class BundleOptimizer:
    def __init__(self, graph: CapabilityGraph):
        self._graph = graph

    def optimize(self, sequence: Sequence[str]) -> Tuple[str, ...]:
        """
        Substitute compounds into `sequence` (module sources, order significant)
        until no further substitution applies. Running it on its own output
        returns that output unchanged.
        """
        modules = [self._graph[source] for source in unique(sequence)]
        substituted = True
        while substituted:
            substituted = False
            for capability in [c for m in modules for c in m.provides]:
                current = _provider_in(modules, capability)
                if current is None or current.is_compound:
                    continue
                compound = self.find_supporting_compound(capability, modules)
                if compound is None:
                    continue
                logger.debug("[optimize] %s replaces %s for %s", compound.source, current.source, capability)
                modules = self._substitute(modules, compound)
                substituted = True
        return unique(m.source for m in modules)

    def find_supporting_compound(self, capability: str, modules: Sequence[Module]) -> Optional[Module]:
        """Best compound able to stand in for the provider of capability, or None."""
        placed = [c for m in modules for c in m.provides]
        best: Optional[Module] = None
        for compound in self._graph.providers_of(capability):
            # only compounds (provides > 1)
            if not compound.is_compound:
                continue
            if compound in modules:
                continue
            if self._substitute(modules, compound, check=True) is None:
                continue
            # choose the one which provides more ids already in the order
            best = _preferred(best, compound, placed)
        return best

    def _substitute(
        self,
        modules: Sequence[Module],
        compound: Module,
        check: bool = False,
    ) -> Optional[List[Module]]:
        """
        Place `compound` at the first entry it subsumes and drop the others.
        With check=True returns None when the substitution is not acceptable.
        """
        gives = set(compound.provides)
        subsumed = [i for i, m in enumerate(modules) if m.provides and set(m.provides) <= gives]
        if not subsumed:
            return None
        at = subsumed[0]
        result = list(modules[:at]) + [compound]
        result += [m for i, m in enumerate(modules) if i > at and i not in subsumed]
        if not check:
            return result

        # a partially covered entry would leave two providers for one id
        for i, module in enumerate(modules):
            if i not in subsumed and any(compound.supports(c) for c in module.provides):
                return None

        # check for more complexity (e.g. extra dependencies)
        if not compound.accepts(modules[:at]):
            return None

        # ask every scheduled module if the replacement is acceptable,
        # taking all its predecessors into account
        for n, permittee in enumerate(result):
            if permittee is compound:
                continue
            previous = [m for m in result[:n] if m is not compound]
            if not permittee.accepts(previous, compound if n > at else None):
                return None
        return result


def _provider_in(modules: Sequence[Module], capability: str) -> Optional[Module]:
    for module in modules:
        if module.supports(capability):
            return module
    return None


def _preferred(left: Optional[Module], right: Module, context: Sequence[str]) -> Module:
    if left is None:
        return right
    # ties keep the earlier registered compound
    if len(right.matches(context)) > len(left.matches(context)):
        return right
    return left
