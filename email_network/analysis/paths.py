import logging
from collections import Counter
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

import networkx as nx

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PathMetrics:
    """
    Shortest-path statistics of a directed graph.

    Only ordered pairs (u, v) with u != v and v reachable from u count.
    With no such pair, diameter is 0 and average_path_length is 0.0.
    """

    diameter: int
    average_path_length: float
    reachable_pairs: int
    length_counts: Mapping[int, int]


def path_metrics(G: nx.DiGraph) -> PathMetrics:
    """
    Computes directed diameter and average shortest-path length over
    reachable ordered pairs. Parallel edges and self-loops do not change
    a shortest path and are collapsed.

    Uses one BFS per source, so memory stays linear in the node count.
    """
    logger.info("--- Path Metrics ---")

    simple = nx.DiGraph(G)
    simple.remove_edges_from(list(nx.selfloop_edges(simple)))

    length_counts: Counter = Counter()
    for source in simple.nodes():
        for target, dist in nx.single_source_shortest_path_length(simple, source).items():
            if target != source:
                length_counts[dist] += 1

    reachable_pairs = sum(length_counts.values())
    if reachable_pairs:
        diameter = max(length_counts)
        avg = sum(d * c for d, c in length_counts.items()) / reachable_pairs
    else:
        diameter, avg = 0, 0.0

    n = simple.number_of_nodes()
    possible = n * (n - 1)
    logger.info(f"Diameter: {diameter}")
    logger.info(f"Average Path Length: {avg:.4f}")
    if possible:
        logger.info(
            f"Reachable ordered pairs: {reachable_pairs}/{possible} "
            f"({100.0 * reachable_pairs / possible:.1f}%)"
        )

    return PathMetrics(
        diameter=diameter,
        average_path_length=float(avg),
        reachable_pairs=reachable_pairs,
        length_counts=MappingProxyType(dict(sorted(length_counts.items()))),
    )
