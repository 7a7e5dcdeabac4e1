import pandas as pd
import pytest

from email_network.loader import (
    GraphValidationError,
    build_email_graph,
    load_email_network,
    read_edge_list,
    read_labels,
    undirected_projection,
)


@pytest.fixture
def network_files(tmp_path):
    """
    Creates a small edge list and label list on disk.
    Node 4 is labelled but sends and receives nothing.
    """
    edges_file = tmp_path / "edges.txt"
    edges_file.write_text("# sender recipient\n1 2\n1 2\n2 3\n3 1\n", encoding="utf-8")

    labels_file = tmp_path / "labels.txt"
    labels_file.write_text("1 0\n2 0\n3 1\n4 41\n", encoding="utf-8")

    return str(edges_file), str(labels_file)


def _write(tmp_path, name, content):
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return str(path)


# --- Reading ---


def test_read_edge_list_skips_comments(network_files):
    edges_file, _ = network_files
    edges = read_edge_list(edges_file)

    assert list(edges.columns) == ["source", "target"]
    assert len(edges) == 4
    assert edges.iloc[0].tolist() == [1, 2]


def test_read_labels_shifts_to_one_based(network_files):
    """Group indices on disk are 0-based; in memory they run 1..42."""
    _, labels_file = network_files
    labels = read_labels(labels_file)

    assert labels == {1: 1, 2: 1, 3: 2, 4: 42}


def test_read_labels_rejects_out_of_range_group(tmp_path):
    path = _write(tmp_path, "labels.txt", "1 0\n2 42\n")

    with pytest.raises(GraphValidationError, match="outside"):
        read_labels(path)


def test_read_labels_rejects_duplicate_node(tmp_path):
    path = _write(tmp_path, "labels.txt", "1 0\n1 3\n")

    with pytest.raises(GraphValidationError, match="more than once"):
        read_labels(path)


def test_read_labels_custom_group_count(tmp_path):
    path = _write(tmp_path, "labels.txt", "1 0\n2 2\n")

    assert read_labels(path, num_groups=3) == {1: 1, 2: 3}
    with pytest.raises(GraphValidationError):
        read_labels(path, num_groups=2)


@pytest.mark.parametrize(
    "content",
    [
        "1 2\n3 x\n",
        "1 2\n3\n",
        "1 2 3\n4 5 6\n",
        "1 2.5\n",
        "1.0 2\n",
        "1e3 2\n",
    ],
)
def test_malformed_rows_fail_fast(tmp_path, content):
    path = _write(tmp_path, "edges.txt", content)

    with pytest.raises(GraphValidationError):
        read_edge_list(path)


def test_missing_and_empty_files(tmp_path):
    with pytest.raises(GraphValidationError, match="not found"):
        read_edge_list(str(tmp_path / "nope.txt"))

    empty = _write(tmp_path, "empty.txt", "")
    with pytest.raises(GraphValidationError, match="empty"):
        read_labels(empty)


# --- Graph Construction ---


def test_build_email_graph_keeps_parallel_edges(network_files):
    G, labels = load_email_network(*network_files)

    assert G.is_directed() and G.is_multigraph()
    assert G.number_of_nodes() == 4
    assert G.number_of_edges() == 4
    assert G.number_of_edges(1, 2) == 2
    assert 4 in G and G.degree(4) == 0
    assert labels[3] == 2


def test_unlabelled_endpoint_raises():
    edges = pd.DataFrame({"source": [1, 2], "target": [2, 99]})

    with pytest.raises(GraphValidationError, match="99"):
        build_email_graph(edges, {1: 1, 2: 1})


def test_graph_carries_no_analysis_attributes(network_files):
    G, _ = load_email_network(*network_files)

    assert all(data == {} for _, data in G.nodes(data=True))


def test_undirected_projection_counts_both_directions(network_files):
    G, _ = load_email_network(*network_files)
    U = undirected_projection(G)

    assert not U.is_directed()
    assert U.number_of_nodes() == 4
    assert U[1][2]["weight"] == 2.0
    assert U[1][3]["weight"] == 1.0
    assert U.size(weight="weight") == G.number_of_edges()


def test_signed_integer_tokens_accepted(tmp_path):
    path = _write(tmp_path, "edges.txt", "+1 2\n-3 4\n")

    assert read_edge_list(path).values.tolist() == [[1, 2], [-3, 4]]


@pytest.mark.parametrize("content", ["", "# sender recipient\n"])
def test_empty_edge_list_is_valid(tmp_path, content):
    """A labelled population that sent no emails loads as an edgeless graph."""
    edges_file = _write(tmp_path, "edges.txt", content)
    labels_file = _write(tmp_path, "labels.txt", "1 0\n2 0\n3 1\n")

    edges = read_edge_list(edges_file)
    assert list(edges.columns) == ["source", "target"]
    assert len(edges) == 0

    G, labels = load_email_network(edges_file, labels_file)
    assert G.number_of_nodes() == 3
    assert G.number_of_edges() == 0
    assert labels == {1: 1, 2: 1, 3: 2}


def test_comment_only_label_file_rejected(tmp_path):
    path = _write(tmp_path, "labels.txt", "# node group\n")

    with pytest.raises(GraphValidationError, match="empty"):
        read_labels(path)
