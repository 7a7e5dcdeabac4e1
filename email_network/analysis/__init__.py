"""
Email Network Analysis Package.

This package contains modules for:
1. Descriptive Statistics (Out-degree distribution, per-group aggregates)
2. Path Metrics (Diameter, Average shortest-path length)
3. Centrality (Betweenness, Closeness, Eigenvector, PageRank)
4. Community Analysis (Louvain clustering vs. research groups)
"""

# 1. Descriptive Statistics
from .descriptive import (
    DistributionSummary,
    analyze_degrees,
    fit_degree_tail,
    group_degree_table,
    out_degrees,
    skewness,
    summarize,
)

# 2. Path Metrics
from .paths import PathMetrics, path_metrics

# 3. Centrality
from .centrality import (
    CentralityScores,
    betweenness,
    centrality_correlations,
    closeness,
    compute_centralities,
    eigenvector,
    pagerank,
)

# 4. Community Detection (Mesoscale Structure)
from .communities import (
    CommunityResult,
    LabelComparison,
    community_label_crosstab,
    compare_with_labels,
    detect_communities,
    label_agreement,
    modularity,
    partition_agreement,
)

__all__ = [
    # Descriptive
    "DistributionSummary",
    "analyze_degrees",
    "fit_degree_tail",
    "group_degree_table",
    "out_degrees",
    "skewness",
    "summarize",
    # Paths
    "PathMetrics",
    "path_metrics",
    # Centrality
    "CentralityScores",
    "betweenness",
    "centrality_correlations",
    "closeness",
    "compute_centralities",
    "eigenvector",
    "pagerank",
    # Communities
    "CommunityResult",
    "LabelComparison",
    "community_label_crosstab",
    "compare_with_labels",
    "detect_communities",
    "label_agreement",
    "modularity",
    "partition_agreement",
]
