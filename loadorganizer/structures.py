"""
Module, Candidate and UsageRecord types for the capability resolver.
Identifier (KT) = capability id (str). Modules are keyed by their source identifier.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple


def unique(ids: Iterable[str]) -> Tuple[str, ...]:
    """Deduplicate while keeping the first occurrence of every id."""
    return tuple(dict.fromkeys(ids))


@dataclass(frozen=True)
class Module:
    """A named artifact (script, stylesheet, ...) providing and requiring capability ids."""

    source: str
    provides: Tuple[str, ...]
    requires: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "provides", unique(self.provides))
        object.__setattr__(self, "requires", unique(self.requires))

    def __hash__(self) -> int:
        return hash(self.source)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Module):
            return False
        return self.source == other.source

    def __str__(self) -> str:
        return self.source

    @property
    def is_complex(self) -> bool:
        return len(self.requires) > 0

    @property
    def is_compound(self) -> bool:
        return len(self.provides) > 1

    def supports(self, capability: str) -> bool:
        return capability in self.provides

    def depends_on(self, capability: str) -> bool:
        return capability in self.requires

    def adds_complexity(self, context: Iterable[str]) -> bool:
        """True if some requirement is missing from context."""
        known = set(context)
        return any(r not in known for r in self.requires)

    def matches(self, context: Iterable[str]) -> Tuple[str, ...]:
        """Provided ids that are also present in context, in provides order."""
        known = set(context)
        return tuple(p for p in self.provides if p in known)

    def accepts(self, previous: Sequence["Module"], candidate: Optional["Module"] = None) -> bool:
        """
        Whether this module can still load after `previous` once `candidate` is
        substituted into the order. Every requirement must be supported by one of
        the predecessors; failing that, the candidate has to support it.
        """
        for need in self.requires:
            if any(m.supports(need) for m in previous):
                continue
            if candidate is None or not candidate.supports(need):
                return False
        return True


@dataclass(frozen=True)
class Candidate:
    """A module ranked against one pending id-set."""

    module: Module
    match_count: int
    complexity_count: int
    extra_requirements: Tuple[str, ...] = ()

    @property
    def source(self) -> str:
        return self.module.source

    @property
    def weight(self) -> int:
        return self.match_count - self.complexity_count


@dataclass(frozen=True)
class UsageRecord:
    """
    A module already chosen for one situation: the ids seen so far, the pending
    ids and what the module provides. Used to refuse re-selecting the same
    module for the same situation.
    """

    source: str
    seen: Tuple[str, ...]
    pending: Tuple[str, ...]
    provides: Tuple[str, ...]

    @property
    def signature(self) -> Tuple[Tuple[str, ...], Tuple[str, ...], Tuple[str, ...]]:
        return (self.seen, self.pending, self.provides)
