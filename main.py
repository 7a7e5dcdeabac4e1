import argparse
import logging
import os
import sys

from email_network.constants import (
    DEFAULT_EDGES_PATH,
    DEFAULT_LABELS_PATH,
    DEFAULT_OUTPUT_DIR,
    LOUVAIN_ITERATIONS,
    LOUVAIN_SEED,
    NUM_GROUPS,
    PAGERANK_DAMPING,
)
from email_network.loader import GraphValidationError, load_email_network
from email_network.pipeline import PipelineConfig, analyze_graph, write_report


def setup_logging(debug_mode: bool = False) -> None:
    """Configures the logging format and level."""
    level = logging.DEBUG if debug_mode else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Statistical report on a directed email network with research-group labels."
    )
    parser.add_argument(
        "--edges",
        type=str,
        default=DEFAULT_EDGES_PATH,
        help="Path to the email edge list (sender recipient per line).",
    )
    parser.add_argument(
        "--labels",
        type=str,
        default=DEFAULT_LABELS_PATH,
        help="Path to the node label list (node group per line, 0-based groups).",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=DEFAULT_OUTPUT_DIR,
        help="Directory to save tables, plots and the HTML map.",
    )
    parser.add_argument(
        "--num-groups",
        type=int,
        default=NUM_GROUPS,
        help="Number of research groups in the label enumeration.",
    )
    parser.add_argument(
        "--damping", type=float, default=PAGERANK_DAMPING, help="PageRank damping factor."
    )
    parser.add_argument(
        "--seed", type=int, default=LOUVAIN_SEED, help="Random state of the first Louvain run."
    )
    parser.add_argument(
        "--iterations",
        type=int,
        default=LOUVAIN_ITERATIONS,
        help="Number of Louvain runs for the stability check.",
    )
    parser.add_argument(
        "--no-map", action="store_true", help="Skip the interactive HTML network map."
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable verbose debug logging."
    )
    return parser


def main(argv=None) -> int:
    """
    Main execution pipeline for the email network report.
    Orchestrates loading, statistics, centrality, communities and output.
    """
    args = build_parser().parse_args(argv)
    setup_logging(args.debug)
    logger = logging.getLogger("Email-Report")

    if not 0.0 < args.damping < 1.0:
        logger.error(f"Damping factor must lie in (0, 1), got {args.damping}.")
        return 1
    if args.iterations < 1:
        logger.error("At least one Louvain iteration is required.")
        return 1

    config = PipelineConfig(
        num_groups=args.num_groups,
        damping=args.damping,
        seed=args.seed,
        louvain_iterations=args.iterations,
        render_map=not args.no_map,
    )

    os.makedirs(args.output, exist_ok=True)
    logger.info(f"Results will be saved to: {args.output}")

    # 1. Load & validate
    logger.info(f"[Phase 1] Loading email graph from {args.edges}...")
    try:
        G, labels = load_email_network(args.edges, args.labels, num_groups=config.num_groups)
    except GraphValidationError as e:
        logger.error(f"Invalid input: {e}")
        return 1

    # 2. Statistics, paths, centrality, communities
    logger.info("[Phase 2] Running Descriptive, Path, Centrality & Community Analysis...")
    results = analyze_graph(G, labels, config)

    # 3. Output
    logger.info("[Phase 3] Writing Report...")
    write_report(G, results, args.output, config)

    logger.info(f"Done! All results saved to: {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
