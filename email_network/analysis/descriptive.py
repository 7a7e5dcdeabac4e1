import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Hashable, Iterable, Mapping

import networkx as nx
import numpy as np
import pandas as pd
import powerlaw

from email_network.constants import MIN_TAIL_SAMPLES, TOP_GROUPS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DistributionSummary:
    """Shape of a sample of non-negative scores."""

    count: int
    mean: float
    sd: float
    median: float
    skewness: float
    min: float
    max: float
    q25: float
    q75: float

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


def skewness(values: Iterable[float]) -> float:
    """
    Standardized third central moment: mean((x - mean(x))^3) / sd(x)^3.

    sd is the sample standard deviation. Returns NaN for fewer than two
    values and 0.0 for a constant sample.
    """
    x = np.asarray(list(values), dtype=float)
    if x.size < 2:
        return float("nan")
    sd = x.std(ddof=1)
    if sd == 0:
        return 0.0
    return float(np.mean((x - x.mean()) ** 3) / sd**3)


def summarize(values: Iterable[float]) -> DistributionSummary:
    """
    Summary statistics for a score distribution.

    Empty input yields zeros for the location statistics and NaN for
    sd and skewness.
    """
    x = np.asarray(list(values), dtype=float)
    if x.size == 0:
        nan = float("nan")
        return DistributionSummary(0, 0.0, nan, 0.0, nan, 0.0, 0.0, 0.0, 0.0)

    q25, median, q75 = np.percentile(x, [25, 50, 75])
    return DistributionSummary(
        count=int(x.size),
        mean=float(x.mean()),
        sd=float(x.std(ddof=1)) if x.size > 1 else float("nan"),
        median=float(median),
        skewness=skewness(x),
        min=float(x.min()),
        max=float(x.max()),
        q25=float(q25),
        q75=float(q75),
    )


def out_degrees(G: nx.MultiDiGraph) -> Dict[Hashable, int]:
    """
    Out-degree per node. Parallel edges each count, so the values sum
    to the number of edges.
    """
    return {node: int(deg) for node, deg in G.out_degree()}


def group_degree_table(
    degrees: Mapping[Hashable, float],
    labels: Mapping[Hashable, int],
    top: int = TOP_GROUPS,
) -> pd.DataFrame:
    """
    Per-group mean and sd of degree, lowest sd first.

    Groups with a single member have an undefined sd and sort last.

    Returns:
        pd.DataFrame: Columns 'label', 'size', 'mean', 'sd'; at most `top` rows.
    """
    df = pd.DataFrame(
        {
            "label": [labels[n] for n in degrees],
            "degree": list(degrees.values()),
        }
    )
    table = (
        df.groupby("label")["degree"]
        .agg(size="size", mean="mean", sd="std")
        .reset_index()
        .sort_values(["sd", "label"], na_position="last", kind="mergesort")
        .head(top)
        .reset_index(drop=True)
    )
    return table


def fit_degree_tail(degrees: Mapping[Hashable, float]) -> Dict[str, Any]:
    """
    Fits the positive part of the degree distribution to a power law and
    compares it against a log-normal.

    Returns:
        Dict: 'alpha', 'xmin', 'compare_R', 'compare_p'. Empty when there are
        fewer than MIN_TAIL_SAMPLES positive degrees or fewer than three
        distinct ones.
    """
    values = np.array([d for d in degrees.values() if d > 0])
    if values.size < MIN_TAIL_SAMPLES or np.unique(values).size < 3:
        logger.warning("Not enough distinct positive degrees for a tail fit.")
        return {}

    fit = powerlaw.Fit(values, discrete=True, verbose=False)
    R, p = fit.distribution_compare("power_law", "lognormal")

    logger.info(f"  Power Law Alpha: {fit.power_law.alpha:.4f}")
    logger.info(f"  Xmin (Cutoff):   {fit.power_law.xmin}")
    logger.info(f"  Power law vs log-normal: R={R:.3f}, p={p:.3f}")

    return {
        "alpha": float(fit.power_law.alpha),
        "xmin": float(fit.power_law.xmin),
        "compare_R": float(R),
        "compare_p": float(p),
    }


def analyze_degrees(
    G: nx.MultiDiGraph, labels: Mapping[Hashable, int], top: int = TOP_GROUPS
) -> Dict[str, Any]:
    """
    Out-degree distribution of the email graph.

    Returns:
        Dict: 'degrees' (node -> out-degree), 'summary', 'groups' (top
        lowest-variance groups) and 'tail' (power-law fit).
    """
    logger.info("--- Out-Degree Distribution ---")

    degrees = out_degrees(G)
    summary = summarize(degrees.values())
    groups = group_degree_table(degrees, labels, top=top)

    logger.info(
        f"Mean: {summary.mean:.2f}, SD: {summary.sd:.2f}, "
        f"Median: {summary.median:.1f}, Skewness: {summary.skewness:.3f}"
    )
    logger.info(f"Lowest-variance groups (top {top}):")
    for row in groups.itertuples(index=False):
        logger.info(
            f"  - Group {row.label}: n={row.size}, mean={row.mean:.2f}, sd={row.sd:.2f}"
        )

    return {
        "degrees": degrees,
        "summary": summary,
        "groups": groups,
        "tail": fit_degree_tail(degrees),
    }
