"""
loadorganizer: capability-based load order resolution.

Modules declare the capability ids they provide and require; the resolver turns
a requested set of ids into a load order where every module follows its
requirements, then swaps groups of simple modules for compound bundles.
"""

from loadorganizer.entrypoint import LoadOrder, LoadQueue, Position, ResolutionRunner, resolve_one
from loadorganizer.exceptions import (
    CircularReference,
    DescriptorError,
    GraphFrozen,
    LoadOrderError,
    UnregisteredCapability,
    UnresolvableIds,
)
from loadorganizer.graph import CapabilityGraph
from loadorganizer.loader import configure, load_descriptor, load_graph
from loadorganizer.optimizer import BundleOptimizer
from loadorganizer.provider import MatchCache
from loadorganizer.resolver import ResolutionState, Resolver, ResolverPhase
from loadorganizer.structures import Candidate, Module

__all__ = [
    "BundleOptimizer",
    "Candidate",
    "CapabilityGraph",
    "CircularReference",
    "DescriptorError",
    "GraphFrozen",
    "LoadOrder",
    "LoadOrderError",
    "LoadQueue",
    "MatchCache",
    "Module",
    "Position",
    "ResolutionRunner",
    "ResolutionState",
    "Resolver",
    "ResolverPhase",
    "UnregisteredCapability",
    "UnresolvableIds",
    "configure",
    "load_descriptor",
    "load_graph",
    "resolve_one",
]
