"""
Build a CapabilityGraph from a module descriptor.

Descriptors come either from a JSON document
    {"scripts": {"<source>": {"provides": [...], "requires": [...]}}}
or from a MongoDB collection holding one document per module
    {"src": "<source>", "provides": [...], "requires": [...]}.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, List, Mapping, Optional

from loadorganizer.exceptions import DescriptorError
from loadorganizer.graph import CapabilityGraph

# Optional: only needed when loading from MongoDB
try:
    from pymongo import MongoClient
    _HAS_PYMONGO = True
except ImportError:
    _HAS_PYMONGO = False
    MongoClient = None  # type: ignore

logger = logging.getLogger(__name__)


def _id_list(owner: str, key: str, value: Any) -> List[str]:
    """Validate one provides/requires entry. Missing means empty."""
    if value is None:
        return []
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        raise DescriptorError(f"{owner}: {key} must be a list of ids, got {value!r}")
    for item in value:
        if not isinstance(item, str):
            raise DescriptorError(f"{owner}: {key} contains a non-string id {item!r}")
    return list(value)


def configure(
    scripts: Mapping[str, Mapping[str, Any]],
    graph: Optional[CapabilityGraph] = None,
) -> CapabilityGraph:
    """Register every {source: {"provides", "requires"}} entry, in mapping order."""
    graph = graph if graph is not None else CapabilityGraph()
    for source, args in scripts.items():
        if not isinstance(args, Mapping):
            raise DescriptorError(f"Module {source!r}: expected an object, got {args!r}")
        graph.register(
            source,
            _id_list(f"Module {source!r}", "provides", args.get("provides")),
            _id_list(f"Module {source!r}", "requires", args.get("requires")),
        )
    return graph


def load_descriptor(path: str, graph: Optional[CapabilityGraph] = None) -> CapabilityGraph:
    """Load a JSON descriptor file. The module table sits under "scripts" or "modules"."""
    with open(path, "r", encoding="utf-8") as f:
        try:
            doc = json.load(f)
        except json.JSONDecodeError as e:
            raise DescriptorError(f"{path}: invalid JSON ({e})") from e
    if not isinstance(doc, Mapping):
        raise DescriptorError(f"{path}: expected a JSON object at the top level")
    scripts = doc.get("scripts", doc.get("modules"))
    if not isinstance(scripts, Mapping):
        raise DescriptorError(f"{path}: no \"scripts\" table found")
    graph = configure(scripts, graph)
    logger.debug("[load] %d modules from %s", len(graph), path)
    return graph


def load_graph_from_collection(
    coll: Any,
    graph: Optional[CapabilityGraph] = None,
    batch_size: int = 10_000,
) -> CapabilityGraph:
    """Register one module per document of a pymongo collection (natural order)."""
    graph = graph if graph is not None else CapabilityGraph()
    proj = {"src": 1, "provides": 1, "requires": 1}
    for d in coll.find({}, proj).batch_size(batch_size):
        source = d.get("src") or d.get("_id")
        if source is None:
            raise DescriptorError(f"Document without a source identifier: {d!r}")
        source = str(source)
        graph.register(
            source,
            _id_list(f"Module {source!r}", "provides", d.get("provides")),
            _id_list(f"Module {source!r}", "requires", d.get("requires")),
        )
    logger.debug("[load] %d modules from collection %s", len(graph), getattr(coll, "name", coll))
    return graph


def load_graph(
    mongo_uri: str = "mongodb://localhost:27017",
    db: str = "lasso",
    collection: str = "modules",
) -> CapabilityGraph:
    """
    Load the module descriptor from MongoDB.
    Requires pymongo.
    """
    if not _HAS_PYMONGO:
        raise RuntimeError("pymongo is required for load_graph()")
    client = MongoClient(mongo_uri)
    try:
        return load_graph_from_collection(client[db][collection])
    finally:
        client.close()


def iter_requests(lines: Iterable[str]) -> Iterable[Mapping[str, List[str]]]:
    """
    Parse JSON lines of requests. Each line is a list of ids (bottom group) or
    an object with "head" and/or "bottom" lists. Blank lines are skipped.
    """
    for n, line in enumerate(lines, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            doc = json.loads(line)
        except json.JSONDecodeError as e:
            raise DescriptorError(f"request line {n}: invalid JSON ({e})") from e
        if isinstance(doc, list):
            doc = {"bottom": doc}
        if not isinstance(doc, Mapping):
            raise DescriptorError(f"request line {n}: expected a list or an object")
        yield {
            "head": _id_list(f"request line {n}", "head", doc.get("head")),
            "bottom": _id_list(f"request line {n}", "bottom", doc.get("bottom")),
        }
