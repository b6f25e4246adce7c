"""
Iterative best-match resolution of a requested capability set into a load order.

Each round ranks every module against the ids seen so far, picks the best one
that provides a pending id, splices its unmet requirements into the order and
marks what it provides as resolved. Once nothing is pending the order is mapped
to modules and handed to the BundleOptimizer.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from resolvelib.reporters import BaseReporter
from resolvelib.resolvers import AbstractResolver

from loadorganizer.exceptions import CircularReference, LoadOrderError, UnresolvableIds
from loadorganizer.optimizer import BundleOptimizer
from loadorganizer.provider import MatchCache
from loadorganizer.structures import Candidate, UsageRecord, unique

logger = logging.getLogger(__name__)


class ResolverPhase(enum.Enum):
    VALIDATING = "validating"
    ITERATING = "iterating"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class ResolutionState:
    """Mutable state of one resolve() call; never shared between calls."""

    requested: Tuple[str, ...]
    resolved: Dict[str, str] = field(default_factory=dict)
    order: List[str] = field(default_factory=list)
    pending: Tuple[str, ...] = ()
    usage_history: Set[UsageRecord] = field(default_factory=set)
    phase: ResolverPhase = ResolverPhase.VALIDATING
    rounds: int = 0

    def enqueue(self, ids: Iterable[str]) -> None:
        for capability in ids:
            if capability not in self.order:
                self.order.append(capability)

    def used_by_other(self, record: UsageRecord) -> bool:
        return any(
            r.signature == record.signature and r.source != record.source
            for r in self.usage_history
        )

    def sequence(self) -> Tuple[str, ...]:
        """Order mapped through resolved, first occurrence of each module wins."""
        return unique(self.resolved[c] for c in self.order)


class Resolver(AbstractResolver):
    """
    Builds load orders against one frozen graph. The provider (a MatchCache) may
    be shared by several resolvers; the state of each call is private to it.
    """

    base_exception = LoadOrderError

    def __init__(
        self,
        provider: MatchCache,
        reporter: Optional[BaseReporter] = None,
        optimizer: Optional[BundleOptimizer] = None,
    ):
        super().__init__(provider, reporter if reporter is not None else BaseReporter())
        self.graph = provider.graph.freeze()
        self.optimizer = optimizer if optimizer is not None else BundleOptimizer(self.graph)

    def resolve(self, requirements: Iterable[str], **kwargs) -> Tuple[str, ...]:
        """Resolve capability ids into the optimized, deduplicated module order."""
        return self.optimizer.optimize(self.resolve_simple(requirements))

    def resolve_simple(self, requirements: Iterable[str]) -> Tuple[str, ...]:
        """Resolve capability ids into a module order before compound substitution."""
        state = ResolutionState(requested=unique(requirements))
        self.reporter.starting()
        try:
            self._validate(state)
            state.phase = ResolverPhase.ITERATING
            self._iterate(state)
            sequence = self._order_by_requirements(state)
        except LoadOrderError:
            state.phase = ResolverPhase.FAILED
            raise
        state.phase = ResolverPhase.COMPLETED
        self.reporter.ending(state)
        return sequence

    def _validate(self, state: ResolutionState) -> None:
        pair = self.graph.circular_pair()
        if pair is not None:
            raise CircularReference(pair)

        missing = self.graph.missing(state.requested)
        if missing:
            raise UnresolvableIds(missing)

        resolvable = self.graph.resolvable()
        blocked = [c for c in state.requested if c not in resolvable]
        if not blocked:
            return
        dangling = self.graph.dangling(blocked)
        if dangling:
            raise UnresolvableIds(dangling)
        raise CircularReference(self.graph.cycle_through(blocked[0]))

    def _iterate(self, state: ResolutionState) -> None:
        pending = state.requested
        while pending:
            pending = unique(pending)
            state.enqueue(pending)
            state.pending = pending
            self.reporter.starting_round(state.rounds)

            # find best matching module to resolve as many ids as possible in one go
            match = self._find_best_match(state)

            # add its unmet requirements to the order
            if match.complexity_count > 0:
                self._add_complex(state, match)
                pending = tuple(state.order)

            self.reporter.pinning(match)
            for capability in match.module.provides:
                state.resolved[capability] = match.source

            pending = tuple(c for c in pending if c not in state.resolved)
            state.pending = pending
            self.reporter.ending_round(state.rounds, state)
            state.rounds += 1

    def _eligible(self, ranked: Sequence[Candidate], pending: Sequence[str]) -> List[Candidate]:
        """
        Candidates providing a pending id. Compounds only qualify for ids no
        loadable simple module provides; bundling is the optimizer's job.
        """
        wanted = set(pending)
        simple = {c for cand in ranked if not cand.module.is_compound for c in cand.module.provides}
        eligible = []
        for candidate in ranked:
            found = [c for c in candidate.module.provides if c in wanted]
            if not found:
                continue
            if candidate.module.is_compound and all(c in simple for c in found):
                continue
            eligible.append(candidate)
        return eligible

    def _find_best_match(self, state: ResolutionState) -> Candidate:
        seen = tuple(state.order)
        pending = state.pending
        candidates = self._eligible(self.provider.ranked_candidates(seen), pending)

        for candidate in candidates:
            record = UsageRecord(
                source=candidate.source,
                seen=seen,
                pending=pending,
                provides=candidate.module.provides,
            )
            if record in state.usage_history:
                self.reporter.rejecting_candidate(record, candidate)
                continue
            if set(candidate.module.provides) == set(pending):
                state.usage_history.add(record)
                return candidate
            if state.used_by_other(record):
                self.reporter.rejecting_candidate(record, candidate)
                continue
            state.usage_history.add(record)
            return candidate

        return self._single_id_match(pending, candidates)

    def _single_id_match(self, pending: Sequence[str], candidates: Sequence[Candidate]) -> Candidate:
        single_id = pending[0]
        logger.debug("[resolve] using single id match %s", single_id)
        for candidate in candidates:
            if candidate.module.provides == (single_id,):
                return candidate
        for candidate in candidates:
            if candidate.module.supports(single_id):
                return candidate
        raise UnresolvableIds([single_id])

    def _add_complex(self, state: ResolutionState, match: Candidate) -> None:
        """
        Splice the extra requirements of match into the order, right after the
        last of its requirements already ordered, or at the front when none is.
        """
        extra = match.extra_requirements
        placed = [r for r in match.module.requires if r not in extra]
        if not placed:
            state.order[0:0] = extra
            return
        position = len(placed)
        for capability in placed:
            position = max(position, state.order.index(capability) + 1)
        state.order[position:position] = extra

    def _order_by_requirements(self, state: ResolutionState) -> Tuple[str, ...]:
        """
        Stable reorder of the mapped sequence so that every module comes after the
        modules resolved for its requirements.
        """
        emitted: Dict[str, None] = {}
        visiting: List[str] = []

        def visit(source: str) -> None:
            if source in emitted:
                return
            if source in visiting:
                cycle = visiting[visiting.index(source):]
                raise CircularReference(self.graph[s] for s in cycle)
            visiting.append(source)
            for capability in self.provider.get_dependencies(self.graph[source]):
                provider = state.resolved.get(capability)
                if provider is not None and provider != source:
                    visit(provider)
            visiting.pop()
            emitted[source] = None

        for source in state.sequence():
            visit(source)
        return tuple(emitted)
