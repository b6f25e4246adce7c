"""
Static registry of modules and their provide/require sets.

Registration is free-form; validation is deferred until resolution because the
whole graph has to be known first. Freeze the graph before resolving: the match
cache relies on it never changing afterwards.
"""

from __future__ import annotations

from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Tuple

from loadorganizer.exceptions import GraphFrozen
from loadorganizer.structures import Module, unique


class CapabilityGraph:
    """Modules by source identifier, in registration order."""

    def __init__(self) -> None:
        self._modules: Dict[str, Module] = {}
        self._frozen = False
        self._resolvable: Optional[FrozenSet[str]] = None

    def register(
        self,
        source: str,
        provides: Iterable[str] = (),
        requires: Iterable[str] = (),
    ) -> Module:
        """Insert or replace a module. A replaced module keeps its registration slot."""
        if self._frozen:
            raise GraphFrozen(source)
        module = Module(source=source, provides=tuple(provides), requires=tuple(requires))
        self._modules[source] = module
        self._resolvable = None
        return module

    def freeze(self) -> "CapabilityGraph":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def modules(self) -> Tuple[Module, ...]:
        return tuple(self._modules.values())

    def get(self, source: str) -> Optional[Module]:
        return self._modules.get(source)

    def __getitem__(self, source: str) -> Module:
        return self._modules[source]

    def __contains__(self, source: object) -> bool:
        return source in self._modules

    def __iter__(self) -> Iterator[Module]:
        return iter(self._modules.values())

    def __len__(self) -> int:
        return len(self._modules)

    def providers_of(self, capability: str) -> Tuple[Module, ...]:
        """All modules (simple and compound) providing capability, in registration order."""
        return tuple(m for m in self._modules.values() if m.supports(capability))

    def missing(self, ids: Iterable[str]) -> Tuple[str, ...]:
        """Ids without a single provider."""
        return tuple(i for i in unique(ids) if not self.providers_of(i))

    def is_satisfiable(self, ids: Iterable[str]) -> bool:
        return not self.missing(ids)

    def resolvable(self) -> FrozenSet[str]:
        """
        Capabilities some module can actually supply: a module qualifies once all
        of its requirements are themselves resolvable. Memoized while frozen.
        """
        if self._resolvable is not None:
            return self._resolvable
        supplied: set = set()
        remaining = list(self._modules.values())
        progress = True
        while progress:
            progress = False
            blocked = []
            for module in remaining:
                if all(r in supplied for r in module.requires):
                    supplied.update(module.provides)
                    progress = True
                else:
                    blocked.append(module)
            remaining = blocked
        result = frozenset(supplied)
        if self._frozen:
            self._resolvable = result
        return result

    def is_loadable(self, module: Module) -> bool:
        resolvable = self.resolvable()
        return all(r in resolvable for r in module.requires)

    def dangling(self, ids: Iterable[str]) -> Tuple[str, ...]:
        """Ids reachable from `ids` through any provider's requirements that nobody provides."""
        seen: List[str] = []
        stack = list(reversed(unique(ids)))
        found: List[str] = []
        while stack:
            capability = stack.pop()
            if capability in seen:
                continue
            seen.append(capability)
            providers = self.providers_of(capability)
            if not providers:
                found.append(capability)
                continue
            for module in providers:
                stack.extend(reversed(module.requires))
        return tuple(found)

    def circular_pair(self) -> Optional[Tuple[Module, Module]]:
        """
        First pair of complex modules where each one's requirements are covered by
        the other's provides. A module whose requirements it provides itself pairs
        with itself.
        """
        complex_modules = [m for m in self._modules.values() if m.is_complex]
        for root in complex_modules:
            gives = set(root.provides)
            for leaf in complex_modules:
                if not all(n in gives for n in leaf.requires):
                    continue
                if all(n in leaf.provides for n in root.requires):
                    return (root, leaf)
        return None

    def cycle_through(self, capability: str) -> Tuple[Module, ...]:
        """
        Follow unloadable providers of `capability` until a module repeats and
        return the modules of that loop. Empty when the capability is resolvable
        or a provider is missing along the way.
        """
        resolvable = self.resolvable()
        path: List[Module] = []
        current = capability
        while current not in resolvable:
            providers = self.providers_of(current)
            if not providers:
                return ()
            module = providers[0]
            if module in path:
                return tuple(path[path.index(module):])
            path.append(module)
            blocking = [r for r in module.requires if r not in resolvable]
            if not blocking:
                return ()
            current = blocking[0]
        return ()
