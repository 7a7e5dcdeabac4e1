import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Hashable, Mapping

import networkx as nx
import numpy as np
import pandas as pd
import scipy.linalg
import scipy.sparse.linalg
from scipy.stats import spearmanr

from email_network.analysis.descriptive import DistributionSummary, summarize
from email_network.constants import (
    DENSE_EIGEN_LIMIT,
    PAGERANK_DAMPING,
    PAGERANK_MAX_ITER,
    PAGERANK_TOL,
)
from email_network.loader import undirected_projection

logger = logging.getLogger(__name__)

MEASURES = ("betweenness", "closeness", "eigenvector", "pagerank")


@dataclass(frozen=True)
class CentralityScores:
    """Read-only per-node scores for the four centrality measures."""

    betweenness: Mapping[Hashable, float]
    closeness: Mapping[Hashable, float]
    eigenvector: Mapping[Hashable, float]
    pagerank: Mapping[Hashable, float]

    def measure(self, name: str) -> Mapping[Hashable, float]:
        if name not in MEASURES:
            raise KeyError(f"Unknown centrality measure: {name}")
        return getattr(self, name)

    def summaries(self) -> Dict[str, DistributionSummary]:
        return {name: summarize(self.measure(name).values()) for name in MEASURES}

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({name: pd.Series(dict(self.measure(name))) for name in MEASURES})


def betweenness(G: nx.DiGraph) -> Dict[Hashable, float]:
    """
    Unnormalized directed betweenness: for every ordered pair (s, t), the
    fraction of shortest s-t paths passing through the node, summed.
    """
    return nx.betweenness_centrality(nx.DiGraph(G), normalized=False)


def closeness(G: nx.DiGraph) -> Dict[Hashable, float]:
    """
    Outgoing closeness: 1 / sum of distances to every node reachable from
    the node. Unreachable nodes are left out of the sum; a node that
    reaches nobody scores 0.0.
    """
    simple = nx.DiGraph(G)
    scores = {}
    for node in simple.nodes():
        total = sum(nx.single_source_shortest_path_length(simple, node).values())
        scores[node] = 1.0 / total if total > 0 else 0.0
    return scores


def eigenvector(G: nx.Graph) -> Dict[Hashable, float]:
    """
    Principal eigenvector of the symmetrized adjacency matrix, where each
    pair is weighted by the number of emails between them in either
    direction. Scaled so the largest score is 1; all zeros without edges.
    """
    U = undirected_projection(G)
    nodes = list(U.nodes())
    n = len(nodes)
    if U.number_of_edges() == 0:
        return {node: 0.0 for node in nodes}

    A = nx.to_scipy_sparse_array(U, nodelist=nodes, weight="weight", dtype=float)

    if n < DENSE_EIGEN_LIMIT:
        _, vectors = scipy.linalg.eigh(A.toarray())
        principal = vectors[:, -1]
    else:
        _, vectors = scipy.sparse.linalg.eigsh(A, k=1, which="LA")
        principal = vectors[:, 0]

    # Perron vector is single-signed up to solver sign choice
    principal = np.abs(principal)
    top = principal.max()
    if top > 0:
        principal = principal / top
    return {node: float(v) for node, v in zip(nodes, principal)}


def pagerank(
    G: nx.MultiDiGraph,
    damping: float = PAGERANK_DAMPING,
    tol: float = PAGERANK_TOL,
) -> Dict[Hashable, float]:
    """
    Damped random-walk stationary distribution by power iteration.

    Parallel edges add to the transition weight. Dangling nodes jump
    uniformly, so an edgeless graph gets a uniform distribution.

    Raises:
        nx.PowerIterationFailedConvergence: If the iteration does not
        reach `tol` within PAGERANK_MAX_ITER steps.
    """
    if G.number_of_nodes() == 0:
        return {}
    return nx.pagerank(G, alpha=damping, tol=tol, max_iter=PAGERANK_MAX_ITER)


def compute_centralities(
    G: nx.MultiDiGraph,
    damping: float = PAGERANK_DAMPING,
    tol: float = PAGERANK_TOL,
) -> CentralityScores:
    """
    Runs all four centrality measures on the email graph.

    Returns:
        CentralityScores: Immutable node -> score mappings.
    """
    logger.info("--- Centrality Analysis ---")

    logger.info("Calculating Betweenness Centrality (this may take a moment)...")
    bc = betweenness(G)
    logger.info("Calculating Closeness Centrality...")
    cc = closeness(G)
    logger.info("Calculating Eigenvector Centrality...")
    ec = eigenvector(G)
    logger.info(f"Calculating PageRank (damping={damping})...")
    pr = pagerank(G, damping=damping, tol=tol)

    scores = CentralityScores(
        betweenness=MappingProxyType(bc),
        closeness=MappingProxyType(cc),
        eigenvector=MappingProxyType(ec),
        pagerank=MappingProxyType(pr),
    )

    for name, summary in scores.summaries().items():
        logger.info(
            f"  {name:<12} mean={summary.mean:.4g} median={summary.median:.4g} "
            f"max={summary.max:.4g} skewness={summary.skewness:.3f}"
        )
        top = sorted(scores.measure(name).items(), key=lambda x: x[1], reverse=True)[:5]
        logger.debug(f"  Top {name}: {top}")

    return scores


def centrality_correlations(
    scores: CentralityScores, degrees: Mapping[Hashable, float]
) -> pd.DataFrame:
    """
    Spearman rank correlation between out-degree and the four centralities.

    Returns:
        pd.DataFrame: Symmetric correlation matrix; empty for fewer than
        three nodes.
    """
    frame = scores.to_frame()
    frame.insert(0, "out_degree", pd.Series(dict(degrees)))
    if len(frame) < 3:
        return pd.DataFrame()

    corr, _ = spearmanr(frame.to_numpy())
    matrix = pd.DataFrame(corr, index=frame.columns, columns=frame.columns)

    logger.info("Spearman correlation with out-degree:")
    for name in MEASURES:
        logger.info(f"  {name:<12} rho={matrix.loc['out_degree', name]:.3f}")
    return matrix
