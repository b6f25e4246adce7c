"""
Graph-backed provider implementing resolvelib's AbstractProvider.
All candidate discovery and ranking happen here, memoized in LRU caches keyed
by canonical id tuples.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Any, List, Optional, Sequence, Tuple

from resolvelib.providers import AbstractProvider

from loadorganizer.graph import CapabilityGraph
from loadorganizer.structures import Candidate, Module


class LRUCache:
    """Bounded memo for the pure MatchCache queries. A cap of 0 disables it."""

    def __init__(self, cap: int):
        self.cap = max(0, int(cap))
        self._entries: OrderedDict = OrderedDict()

    def get(self, key: Tuple) -> Optional[Any]:
        value = self._entries.get(key)
        if value is not None:
            self._entries.move_to_end(key)
        return value

    def put(self, key: Tuple, value: Any) -> None:
        if not self.cap:
            return
        self._entries[key] = value
        self._entries.move_to_end(key)
        if len(self._entries) > self.cap:
            self._entries.popitem(last=False)

    def __len__(self) -> int:
        return len(self._entries)


class MatchCache(AbstractProvider):
    """
    Memoizes the two expensive pure queries of a resolution run. Both only
    depend on the (frozen) graph and their arguments, so entries are never
    invalidated and one cache may serve every resolver working on the graph.

    Only the identity and dependency hooks of AbstractProvider are honoured;
    candidate search and preference are ranked_candidates(). It is meant for
    loadorganizer.resolver.Resolver, not for resolvelib's backtracking Resolver.
    """

    def __init__(self, graph: CapabilityGraph, cache_cap: int = 200_000):
        self.graph = graph
        self._unresolved = LRUCache(cache_cap)
        self._ranked = LRUCache(cache_cap)

    def identify(self, requirement_or_candidate: Any) -> str:
        if isinstance(requirement_or_candidate, Candidate):
            return requirement_or_candidate.source
        if isinstance(requirement_or_candidate, Module):
            return requirement_or_candidate.source
        return str(requirement_or_candidate)

    def is_satisfied_by(self, requirement: str, candidate: Candidate | Module) -> bool:
        module = candidate.module if isinstance(candidate, Candidate) else candidate
        return module.supports(requirement)

    def get_dependencies(self, candidate: Candidate | Module) -> List[str]:
        module = candidate.module if isinstance(candidate, Candidate) else candidate
        return list(module.requires)

    def unresolved(self, requiring: Sequence[str], providing: Sequence[str]) -> Tuple[str, ...]:
        """Entries of `requiring` not present in `providing`."""
        key = (tuple(requiring), tuple(providing))
        cached = self._unresolved.get(key)
        if cached is None:
            provided = set(key[1])
            cached = tuple(i for i in key[0] if i not in provided)
            self._unresolved.put(key, cached)
        return cached

    def ranked_candidates(self, pending: Sequence[str]) -> Tuple[Candidate, ...]:
        """
        One candidate per loadable module providing at least one id of `pending`,
        sorted by provided ids minus added requirements. The sort is stable so
        ties keep registration order.
        """
        key = tuple(pending)
        cached = self._ranked.get(key)
        if cached is not None:
            return cached

        candidates: List[Candidate] = []
        for module in self.graph.modules:
            found = module.matches(key)
            # no contender, disqualify
            if not found:
                continue
            # disqualify requirements the graph can never satisfy
            if module.is_complex and not self.graph.is_loadable(module):
                continue
            extra = self.unresolved(module.requires, key)
            candidates.append(
                Candidate(
                    module=module,
                    match_count=len(found),
                    complexity_count=len(extra),
                    extra_requirements=extra,
                )
            )

        candidates.sort(key=lambda c: c.weight, reverse=True)
        ranked = tuple(candidates)
        self._ranked.put(key, ranked)
        return ranked
