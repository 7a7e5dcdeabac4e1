import os

import networkx as nx
import pytest

from email_network.visualization import plot_histogram, visualize_network


@pytest.fixture
def viz_setup(tmp_path):
    """
    Creates a temporary directory for visualization output.
    Returns the path to the expected HTML file.
    """
    output_dir = tmp_path / "temp_viz"
    output_dir.mkdir()

    test_file = output_dir / "map.html"
    return str(test_file)


def test_html_generation(viz_setup):
    """
    Verifies that the visualization function generates a valid HTML file.
    """
    test_file_path = viz_setup

    G = nx.MultiDiGraph(nx.karate_club_graph())
    partition = {n: n % 3 for n in G.nodes()}
    labels = {n: 1 for n in G.nodes()}

    written = visualize_network(G, partition, labels, title=test_file_path, top_nodes=10)

    assert written == test_file_path
    assert os.path.exists(test_file_path)

    with open(test_file_path, "r", encoding="utf-8") as f:
        content = f.read()
        assert "<html>" in content.lower() or "<!doctype html>" in content.lower()
        assert "<script" in content.lower()
        assert "Community: " in content


def test_histogram_written(tmp_path):
    path = plot_histogram(
        [0, 1, 1, 2, 3, 5, 8],
        title="Out-Degree",
        xlabel="k",
        save_path=str(tmp_path / "plots" / "degree.png"),
        log_y=True,
    )

    assert os.path.getsize(path) > 0


def test_histogram_handles_empty_input(tmp_path):
    path = plot_histogram([], title="Empty", xlabel="x", save_path=str(tmp_path / "e.png"))

    assert os.path.exists(path)
