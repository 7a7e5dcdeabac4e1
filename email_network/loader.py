import logging
import os
from typing import Dict, Tuple

import networkx as nx
import pandas as pd

from email_network.constants import LABEL_OFFSET, NUM_GROUPS

logger = logging.getLogger(__name__)


class GraphValidationError(ValueError):
    """Raised when the edge list or the label list cannot be turned into a graph."""


INTEGER_TOKEN = r"[+-]?\d+"


def _read_int_pairs(
    path: str, columns: Tuple[str, str], allow_empty: bool = False
) -> pd.DataFrame:
    """
    Reads a whitespace-delimited file of integer pairs.

    Lines starting with '#' are ignored. Every remaining row must hold
    exactly two plain integer tokens ('1.0' and '1e3' are rejected).

    Args:
        path (str): Path to the file.
        columns (Tuple[str, str]): Names of the two columns.
        allow_empty (bool): Return an empty frame instead of failing when
            the file has no data rows.

    Raises:
        GraphValidationError: On a missing file, a disallowed empty file or
        a malformed row.
    """
    if not os.path.exists(path):
        raise GraphValidationError(f"Input file not found: {path}")

    try:
        df = pd.read_csv(path, sep=r"\s+", comment="#", header=None, dtype=str)
    except pd.errors.EmptyDataError:
        if allow_empty:
            return pd.DataFrame({name: pd.Series(dtype="int64") for name in columns})
        raise GraphValidationError(f"Input file is empty: {path}") from None
    except pd.errors.ParserError as e:
        raise GraphValidationError(f"Could not parse {path}: {e}") from e

    if df.shape[1] != 2:
        raise GraphValidationError(
            f"{path}: expected 2 columns per row, found {df.shape[1]}"
        )

    df.columns = list(columns)

    # Row numbers are reported 1-based over the data rows
    is_int = df.apply(lambda col: col.str.fullmatch(INTEGER_TOKEN).fillna(False))
    bad_rows = ~is_int.all(axis=1)
    if bad_rows.any():
        first = int(bad_rows.to_numpy().nonzero()[0][0])
        raise GraphValidationError(
            f"{path}: row {first + 1} is not a pair of integers: "
            f"{df.iloc[first].tolist()}"
        )

    return df.astype("int64")


def read_edge_list(path: str) -> pd.DataFrame:
    """
    Reads the email edge list (sender, recipient) into a DataFrame.

    Args:
        path (str): Path to the whitespace-delimited edge file.

    Returns:
        pd.DataFrame: Columns 'source' and 'target', one row per email.
    """
    edges = _read_int_pairs(path, ("source", "target"), allow_empty=True)
    logger.info(f"Read {len(edges)} email edges from {path}")
    return edges


def read_labels(
    path: str, num_groups: int = NUM_GROUPS, label_offset: int = LABEL_OFFSET
) -> Dict[int, int]:
    """
    Reads the node -> group file and shifts the group index to 1-based.

    Args:
        path (str): Path to the whitespace-delimited label file.
        num_groups (int): Size of the group enumeration.
        label_offset (int): Added to every group index read from disk.

    Returns:
        Dict[int, int]: Node id -> group label in 1..num_groups.
    """
    df = _read_int_pairs(path, ("node", "label"))

    duplicated = df["node"][df["node"].duplicated()]
    if not duplicated.empty:
        raise GraphValidationError(
            f"{path}: nodes labelled more than once: {sorted(set(duplicated))[:10]}"
        )

    df["label"] = df["label"] + label_offset
    out_of_range = df[(df["label"] < 1) | (df["label"] > num_groups)]
    if not out_of_range.empty:
        row = out_of_range.iloc[0]
        raise GraphValidationError(
            f"{path}: node {row['node']} has group {row['label'] - label_offset}, "
            f"outside 0..{num_groups - 1}"
        )

    labels = dict(zip(df["node"].tolist(), df["label"].tolist()))
    logger.info(
        f"Read labels for {len(labels)} nodes "
        f"({df['label'].nunique()} of {num_groups} groups present)"
    )
    return labels


def build_email_graph(edges: pd.DataFrame, labels: Dict[int, int]) -> nx.MultiDiGraph:
    """
    Builds the directed email multigraph.

    Every labelled node is added, isolated ones included. Repeated emails
    between the same pair become parallel edges.

    Raises:
        GraphValidationError: If an edge endpoint has no label.
    """
    endpoints = set(edges["source"]).union(edges["target"])
    unlabelled = sorted(endpoints - set(labels))
    if unlabelled:
        raise GraphValidationError(
            f"{len(unlabelled)} edge endpoint(s) have no group label, "
            f"e.g. {unlabelled[:10]}"
        )

    G = nx.MultiDiGraph()
    G.add_nodes_from(sorted(labels))
    G.add_edges_from(zip(edges["source"].tolist(), edges["target"].tolist()))

    logger.info(
        f"Email graph: {G.number_of_nodes()} nodes, {G.number_of_edges()} edges "
        f"({nx.number_of_selfloops(G)} self-loops)"
    )
    return G


def undirected_projection(G: nx.MultiDiGraph) -> nx.Graph:
    """
    Collapses the email graph to an undirected simple graph.

    The 'weight' of a pair counts the emails exchanged in both directions.
    """
    U = nx.Graph()
    U.add_nodes_from(G.nodes())
    for u, v in G.edges():
        if U.has_edge(u, v):
            U[u][v]["weight"] += 1.0
        else:
            U.add_edge(u, v, weight=1.0)
    return U


def load_email_network(
    edges_path: str, labels_path: str, num_groups: int = NUM_GROUPS
) -> Tuple[nx.MultiDiGraph, Dict[int, int]]:
    """Reads both input files and returns the graph with its label map."""
    labels = read_labels(labels_path, num_groups=num_groups)
    edges = read_edge_list(edges_path)
    return build_email_graph(edges, labels), labels
