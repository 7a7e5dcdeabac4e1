"""Default paths and tuning constants for the email network report."""

# Input data (SNAP email-Eu-core layout)
DEFAULT_EDGES_PATH = "data/email-Eu-core.txt"
DEFAULT_LABELS_PATH = "data/email-Eu-core-department-labels.txt"
DEFAULT_OUTPUT_DIR = "results"

# Group labels are 0-based on disk, 1..NUM_GROUPS in memory
NUM_GROUPS = 42
LABEL_OFFSET = 1

# Descriptive statistics
TOP_GROUPS = 5
MIN_TAIL_SAMPLES = 10

# PageRank
PAGERANK_DAMPING = 0.85
PAGERANK_TOL = 1e-10
PAGERANK_MAX_ITER = 1000

# Eigenvector centrality: dense solver below this many nodes
DENSE_EIGEN_LIMIT = 2000

# Louvain
LOUVAIN_SEED = 0
LOUVAIN_ITERATIONS = 5

# Interactive map
MAP_TOP_NODES = 500

HISTOGRAM_BINS = 50
