import logging
import os
from typing import Hashable, Iterable, Mapping, Optional

import matplotlib.pyplot as plt
import networkx as nx
import numpy as np
from pyvis.network import Network

from email_network.constants import HISTOGRAM_BINS, MAP_TOP_NODES

logger = logging.getLogger(__name__)


def plot_histogram(
    values: Iterable[float],
    title: str,
    xlabel: str,
    save_path: str,
    log_y: bool = False,
) -> str:
    """
    Saves a histogram with the mean and median marked.

    Returns:
        str: The path written.
    """
    data = np.asarray(list(values), dtype=float)

    output_dir = os.path.dirname(save_path)
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)

    plt.figure(figsize=(8, 5))
    plt.hist(data, bins=HISTOGRAM_BINS, alpha=0.7, color="skyblue", edgecolor="black")
    if data.size:
        plt.axvline(
            data.mean(), color="red", linestyle="dashed", label=f"Mean: {data.mean():.3g}"
        )
        plt.axvline(
            np.median(data),
            color="green",
            linestyle="dotted",
            label=f"Median: {np.median(data):.3g}",
        )
        plt.legend()
    plt.title(title)
    plt.xlabel(xlabel)
    plt.ylabel("Frequency")
    if log_y:
        plt.yscale("log")
    plt.grid(axis="y", alpha=0.3)

    plt.savefig(save_path)
    plt.close()
    logger.debug(f"Histogram saved to {save_path}")
    return save_path


def visualize_network(
    G: nx.MultiDiGraph,
    partition: Mapping[Hashable, int],
    labels: Mapping[Hashable, int],
    title: str = "results/email_interactive_map.html",
    top_nodes: int = MAP_TOP_NODES,
) -> Optional[str]:
    """
    Generates an interactive HTML map of the busiest senders and recipients.

    Keeps the `top_nodes` nodes by total degree, sizes them by degree and
    colours them by detected community. The tooltip shows the true group.

    Returns:
        Optional[str]: The path written, or None if saving failed.
    """
    logger.info("--- Projecting Interactive Email Map ---")

    output_dir = os.path.dirname(title)
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)

    degrees = dict(G.degree())
    hubs = sorted(degrees, key=lambda n: (-degrees[n], n))[:top_nodes]
    G_sub = nx.DiGraph(G.subgraph(hubs))

    logger.info(f"  Rendering subgraph with {len(hubs)} nodes (Top Hubs)...")

    net = Network(
        height="100vh",
        width="100%",
        bgcolor="#222222",
        font_color="white",
        directed=True,
        cdn_resources="remote",
    )

    for node in G_sub.nodes():
        comm_id = partition.get(node, 0)
        net.add_node(
            str(node),
            label=str(node),
            title=(
                f"Member: {node}\nDegree: {degrees[node]}\n"
                f"Group: {labels.get(node)}\nCommunity: {comm_id}"
            ),
            value=degrees[node],
            group=comm_id,
        )

    for u, v in G_sub.edges():
        net.add_edge(str(u), str(v), color="#555555")

    net.force_atlas_2based()

    try:
        net.save_graph(title)
    except OSError as e:
        logger.error(f"  Error saving visualization: {e}")
        return None
    logger.info(f"  Success! Interactive map saved to: {title}")
    return title
