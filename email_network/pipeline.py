"""
End-to-end report pipeline.

Loads the email graph, runs every analysis once, and collects the output in
a read-only ``ReportResults`` keyed by node id. Nothing is written onto the
graph's nodes; the graph is returned next to the results.
"""

import json
import logging
import math
import os
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Hashable, Mapping, Tuple

import networkx as nx
import pandas as pd

from email_network.analysis.centrality import (
    MEASURES,
    CentralityScores,
    centrality_correlations,
    compute_centralities,
)
from email_network.analysis.communities import (
    CommunityResult,
    LabelComparison,
    compare_with_labels,
    detect_communities,
)
from email_network.analysis.descriptive import DistributionSummary, analyze_degrees
from email_network.analysis.paths import PathMetrics, path_metrics
from email_network.constants import (
    LOUVAIN_ITERATIONS,
    LOUVAIN_SEED,
    MAP_TOP_NODES,
    NUM_GROUPS,
    PAGERANK_DAMPING,
    PAGERANK_TOL,
    TOP_GROUPS,
)
from email_network.loader import load_email_network
from email_network.visualization import plot_histogram, visualize_network

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineConfig:
    num_groups: int = NUM_GROUPS
    top_groups: int = TOP_GROUPS
    damping: float = PAGERANK_DAMPING
    pagerank_tol: float = PAGERANK_TOL
    seed: int = LOUVAIN_SEED
    louvain_iterations: int = LOUVAIN_ITERATIONS
    render_map: bool = True
    map_top_nodes: int = MAP_TOP_NODES


@dataclass(frozen=True)
class ReportResults:
    """Everything the report shows, computed once per run."""

    num_nodes: int
    num_edges: int
    labels: Mapping[Hashable, int]
    degrees: Mapping[Hashable, int]
    degree_summary: DistributionSummary
    group_table: pd.DataFrame
    degree_tail: Mapping[str, float]
    paths: PathMetrics
    centrality: CentralityScores
    centrality_summaries: Mapping[str, DistributionSummary]
    centrality_correlations: pd.DataFrame
    communities: CommunityResult
    label_comparison: LabelComparison

    def node_table(self) -> pd.DataFrame:
        """One row per node: true label, out-degree, centralities, community."""
        table = pd.DataFrame(
            {
                "label": pd.Series(dict(self.labels)),
                "out_degree": pd.Series(dict(self.degrees)),
            }
        )
        table = table.join(self.centrality.to_frame())
        table["community"] = pd.Series(dict(self.communities.partition))
        table["label_agreement"] = pd.Series(dict(self.label_comparison.agreement))
        table.index.name = "node"
        return table.sort_index()

    def scalar_summary(self) -> Dict[str, Any]:
        """JSON-ready scalar results; undefined values become None."""
        summary = {
            "nodes": self.num_nodes,
            "edges": self.num_edges,
            "degree": self.degree_summary.as_dict(),
            "degree_tail": dict(self.degree_tail),
            "lowest_variance_groups": self.group_table.to_dict(orient="records"),
            "paths": {
                "diameter": self.paths.diameter,
                "average_path_length": self.paths.average_path_length,
                "reachable_pairs": self.paths.reachable_pairs,
            },
            "centrality": {
                name: s.as_dict() for name, s in self.centrality_summaries.items()
            },
            "communities": {
                "count": self.communities.n_communities,
                "modularity": self.communities.modularity,
                "stability_ari": self.communities.stability,
                "sizes": list(self.communities.sizes().values()),
                "label_agreement": self.label_comparison.summary.as_dict(),
                "nmi_vs_labels": self.label_comparison.nmi,
                "ari_vs_labels": self.label_comparison.ari,
            },
        }
        return _json_ready(summary)


def _json_ready(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k): _json_ready(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_ready(v) for v in value]
    if hasattr(value, "item"):
        value = value.item()
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def analyze_graph(
    G: nx.MultiDiGraph,
    labels: Mapping[Hashable, int],
    config: PipelineConfig = PipelineConfig(),
) -> ReportResults:
    """Runs every analysis over an already loaded email graph."""
    degree_report = analyze_degrees(G, labels, top=config.top_groups)
    paths = path_metrics(G)
    centrality = compute_centralities(G, damping=config.damping, tol=config.pagerank_tol)
    correlations = centrality_correlations(centrality, degree_report["degrees"])
    communities = detect_communities(
        G, seed=config.seed, n_iterations=config.louvain_iterations
    )
    comparison = compare_with_labels(communities, labels)

    return ReportResults(
        num_nodes=G.number_of_nodes(),
        num_edges=G.number_of_edges(),
        labels=MappingProxyType(dict(labels)),
        degrees=MappingProxyType(degree_report["degrees"]),
        degree_summary=degree_report["summary"],
        group_table=degree_report["groups"],
        degree_tail=MappingProxyType(degree_report["tail"]),
        paths=paths,
        centrality=centrality,
        centrality_summaries=MappingProxyType(centrality.summaries()),
        centrality_correlations=correlations,
        communities=communities,
        label_comparison=comparison,
    )


def run_pipeline(
    edges_path: str,
    labels_path: str,
    config: PipelineConfig = PipelineConfig(),
) -> Tuple[nx.MultiDiGraph, ReportResults]:
    """
    Loads both input files and computes the full report.

    Raises:
        GraphValidationError: If the inputs are malformed or inconsistent.
    """
    G, labels = load_email_network(edges_path, labels_path, num_groups=config.num_groups)
    return G, analyze_graph(G, labels, config)


_HISTOGRAMS = {
    "degree": ("Out-Degree Distribution", "Emails sent (out-degree)", True),
    "betweenness": ("Betweenness Centrality", "Betweenness", True),
    "closeness": ("Closeness Centrality", "Closeness", False),
    "eigenvector": ("Eigenvector Centrality", "Eigenvector score (max = 1)", True),
    "pagerank": ("PageRank", "PageRank score", True),
    "label_agreement": (
        "Community Members Sharing a Node's Group",
        "Share of community with the same group (%)",
        False,
    ),
}


def plot_report_histograms(results: ReportResults, output_dir: str) -> Dict[str, str]:
    """Writes the six report histograms; returns name -> file path."""
    series = {
        "degree": results.degrees.values(),
        "label_agreement": results.label_comparison.agreement.values(),
    }
    for name in MEASURES:
        series[name] = results.centrality.measure(name).values()

    paths = {}
    for name, (title, xlabel, log_y) in _HISTOGRAMS.items():
        paths[name] = plot_histogram(
            series[name],
            title=title,
            xlabel=xlabel,
            save_path=os.path.join(output_dir, f"{name}_histogram.png"),
            log_y=log_y,
        )
    return paths


def write_report(
    G: nx.MultiDiGraph,
    results: ReportResults,
    output_dir: str,
    config: PipelineConfig = PipelineConfig(),
) -> Dict[str, str]:
    """
    Writes tables, histograms and the interactive map into `output_dir`.

    Returns:
        Dict[str, str]: Artifact name -> path.
    """
    logger.info(f"--- Writing Report to {output_dir} ---")
    os.makedirs(output_dir, exist_ok=True)

    artifacts = {}

    artifacts["summary"] = os.path.join(output_dir, "summary.json")
    with open(artifacts["summary"], "w", encoding="utf-8") as f:
        json.dump(results.scalar_summary(), f, indent=2)

    artifacts["node_metrics"] = os.path.join(output_dir, "node_metrics.csv")
    results.node_table().to_csv(artifacts["node_metrics"])

    artifacts["group_table"] = os.path.join(output_dir, "group_degree_top5.csv")
    results.group_table.to_csv(artifacts["group_table"], index=False)

    artifacts["crosstab"] = os.path.join(output_dir, "community_label_crosstab.csv")
    results.label_comparison.crosstab.to_csv(artifacts["crosstab"])

    if not results.centrality_correlations.empty:
        artifacts["correlations"] = os.path.join(output_dir, "centrality_correlations.csv")
        results.centrality_correlations.to_csv(artifacts["correlations"])

    for name, path in plot_report_histograms(results, output_dir).items():
        artifacts[f"{name}_histogram"] = path

    if config.render_map:
        map_path = visualize_network(
            G,
            results.communities.partition,
            results.labels,
            title=os.path.join(output_dir, "interactive_map.html"),
            top_nodes=config.map_top_nodes,
        )
        if map_path:
            artifacts["map"] = map_path

    logger.info(f"Wrote {len(artifacts)} artifacts.")
    return artifacts
