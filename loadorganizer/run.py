#!/usr/bin/env python3
"""
Resolve queued capability ids into a module load order.

Loads the module descriptor from a JSON file or MongoDB, queues the requested
ids (head and bottom groups) and prints the resolved order. With --requests,
resolves every line of a JSON lines file and writes the results to CSV.

Usage:
  python -m loadorganizer.run --descriptor config.json --require jq --require ft
  python -m loadorganizer.run --descriptor config.json --requests requests.jsonl --output-dir output
"""

from __future__ import annotations

import argparse
import csv
import logging
import os
import sys
from typing import List, Optional

from resolvelib.resolvers import ResolverException
from tqdm import tqdm

from loadorganizer.entrypoint import Position, ResolutionRunner
from loadorganizer.graph import CapabilityGraph
from loadorganizer.loader import iter_requests, load_descriptor, load_graph
from loadorganizer.exceptions import LoadOrderError
from loadorganizer.reporters import LoggingReporter


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(
        description="Resolve capability ids into a size-minimized module load order."
    )
    ap.add_argument("--descriptor", default=None, help="JSON descriptor file ({\"scripts\": {...}})")
    ap.add_argument("--mongo-uri", default=None, help="Load the descriptor from MongoDB instead")
    ap.add_argument("--db", default="lasso", help="Database name for the module collection")
    ap.add_argument("--collection", default="modules", help="Module collection name")

    ap.add_argument("--require", action="append", default=[], help="Capability id for the bottom group (repeatable)")
    ap.add_argument("--head", action="append", default=[], help="Capability id for the head group (repeatable)")
    ap.add_argument("--requests", default=None, help="JSON lines file of requests; enables batch mode")
    ap.add_argument("--output-dir", default="output", help="Output directory for the batch CSV")

    ap.add_argument("--simple", action="store_true", help="Skip compound (bundle) substitution")
    ap.add_argument("--cache-cap", type=int, default=200_000, help="LRU cap for the match caches")
    ap.add_argument("--verbose", action="store_true", help="Log every resolution round")

    args = ap.parse_args(argv)
    if (args.descriptor is None) == (args.mongo_uri is None):
        ap.error("exactly one of --descriptor and --mongo-uri is required")
    return args


def load(args: argparse.Namespace) -> CapabilityGraph:
    if args.descriptor is not None:
        print(f"[load] Loading descriptor {args.descriptor} ...")
        return load_descriptor(args.descriptor)
    print(f"[load] Loading modules from {args.db}.{args.collection} ...")
    return load_graph(mongo_uri=args.mongo_uri, db=args.db, collection=args.collection)


def run_batch(runner: ResolutionRunner, args: argparse.Namespace) -> int:
    with open(args.requests, "r", encoding="utf-8") as f:
        requests = list(iter_requests(f))
    print(f"[batch] {len(requests):,} requests")

    os.makedirs(args.output_dir, exist_ok=True)
    stem = os.path.splitext(os.path.basename(args.requests))[0]
    csv_path = os.path.join(args.output_dir, f"{stem}.csv")

    num_resolved = 0
    num_failed = 0

    with open(csv_path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["index", "resolved", "modules", "elapsed_ms"])

        for index, request in enumerate(tqdm(requests, desc="Resolve")):
            try:
                queue = runner.new_queue()
                queue.extend(request["head"], Position.HEAD)
                queue.extend(request["bottom"], Position.BOTTOM)
                result = runner.resolve_queue(queue)
            except ResolverException as e:
                writer.writerow([index, False, str(e), ""])
                num_failed += 1
                continue
            writer.writerow([index, True, " ".join(result.modules), f"{result.elapsed_ms:0.5f}"])
            num_resolved += 1

    print(f"[output] Wrote {csv_path}")

    print("\n--- Final stats ---")
    print(f"  Total requests processed: {len(requests):,}")
    print(f"  Resolved:                 {num_resolved:,}")
    print(f"  Not resolved:             {num_failed:,}")
    return 0


def run(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s %(message)s")

    try:
        graph = load(args)
        print(f"[load] {len(graph):,} modules registered")
        runner = ResolutionRunner(
            graph,
            reporter=LoggingReporter(),
            cache_cap=args.cache_cap,
            optimize=not args.simple,
        )

        if args.requests is not None:
            return run_batch(runner, args)

        queue = runner.new_queue()
        queue.extend(args.head, Position.HEAD)
        queue.extend(args.require, Position.BOTTOM)
        result = runner.resolve_queue(queue)
    except (LoadOrderError, OSError) as e:
        print(f"[error] {e}", file=sys.stderr)
        return 1

    print(f"[resolve] executed in {result.elapsed_ms:0.5f} milliseconds")
    for n, source in enumerate(result.modules):
        print(f"{n}: {source}")
    return 0


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
