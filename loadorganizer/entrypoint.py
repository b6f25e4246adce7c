"""
Entrypoint: freeze a graph once, then resolve queued capability ids into timed
load orders. Queue groups (head, bottom) are resolved as independent resolver
runs and concatenated, head first.
"""

from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from resolvelib.reporters import BaseReporter

from loadorganizer.exceptions import UnregisteredCapability
from loadorganizer.graph import CapabilityGraph
from loadorganizer.provider import MatchCache
from loadorganizer.resolver import Resolver
from loadorganizer.structures import unique


class Position(enum.IntEnum):
    HEAD = 1
    BOTTOM = 2


class LoadQueue:
    """Ordered, duplicate-free capability ids split into head and bottom groups."""

    def __init__(self, graph: CapabilityGraph):
        self._graph = graph
        self._groups: Dict[Position, List[str]] = {Position.HEAD: [], Position.BOTTOM: []}

    def queue(self, capability: str, position: Position = Position.BOTTOM) -> "LoadQueue":
        if not self._graph.providers_of(capability):
            raise UnregisteredCapability(capability)

        head = self._groups[Position.HEAD]
        bottom = self._groups[Position.BOTTOM]
        if position == Position.HEAD:
            # head wins: move the id up if it was queued at the bottom
            if capability in bottom:
                bottom.remove(capability)
            if capability not in head:
                head.append(capability)
        elif capability not in head and capability not in bottom:
            bottom.append(capability)
        return self

    def extend(self, ids: Iterable[str], position: Position = Position.BOTTOM) -> "LoadQueue":
        for capability in ids:
            self.queue(capability, position)
        return self

    def group(self, position: Position) -> Tuple[str, ...]:
        return tuple(self._groups[position])

    @property
    def queued(self) -> Tuple[str, ...]:
        return self.group(Position.HEAD) + self.group(Position.BOTTOM)

    def __len__(self) -> int:
        return len(self.queued)


@dataclass(frozen=True)
class LoadOrder:
    """Final module order plus the order of every queue group and the time it took."""

    modules: Tuple[str, ...]
    groups: Dict[Position, Tuple[str, ...]] = field(default_factory=dict)
    elapsed_ms: float = 0.0


class ResolutionRunner:
    """
    Holds the frozen graph and a MatchCache shared by every run. Call resolve()
    with capability ids, or resolve_queue() with a LoadQueue.
    """

    def __init__(
        self,
        graph: CapabilityGraph,
        reporter: Optional[BaseReporter] = None,
        cache_cap: int = 200_000,
        optimize: bool = True,
    ):
        self._graph = graph.freeze()
        self._provider = MatchCache(graph, cache_cap=cache_cap)
        self._reporter = reporter
        self._optimize = optimize

    @property
    def graph(self) -> CapabilityGraph:
        return self._graph

    def new_queue(self) -> LoadQueue:
        return LoadQueue(self._graph)

    def _run(self, ids: Iterable[str]) -> Tuple[str, ...]:
        resolver = Resolver(self._provider, self._reporter)
        if self._optimize:
            return resolver.resolve(ids)
        return resolver.resolve_simple(ids)

    def resolve(self, ids: Iterable[str]) -> LoadOrder:
        """
        Resolve one group of capability ids.

        :param ids: Requested capability ids, order significant.
        :return: LoadOrder with the modules and the elapsed milliseconds.
        :raises LoadOrderError: on unresolvable ids or circular references.
        """
        start = time.perf_counter()
        modules = self._run(ids)
        elapsed_ms = (time.perf_counter() - start) * 1000
        return LoadOrder(modules=modules, groups={Position.BOTTOM: modules}, elapsed_ms=elapsed_ms)

    def resolve_queue(self, queue: LoadQueue) -> LoadOrder:
        """Resolve every non-empty group on its own, head first, and concatenate."""
        start = time.perf_counter()
        groups: Dict[Position, Tuple[str, ...]] = {}
        for position in Position:
            ids = queue.group(position)
            if ids:
                groups[position] = self._run(ids)
        modules = unique(m for position in Position for m in groups.get(position, ()))
        elapsed_ms = (time.perf_counter() - start) * 1000
        return LoadOrder(modules=modules, groups=groups, elapsed_ms=elapsed_ms)


def resolve_one(
    graph: CapabilityGraph,
    ids: Iterable[str],
    optimize: bool = True,
) -> Tuple[str, ...]:
    """
    One-shot resolve of capability ids against graph.
    """
    runner = ResolutionRunner(graph, optimize=optimize)
    return runner.resolve(ids).modules
