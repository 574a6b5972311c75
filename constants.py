"""App constants, overridable via environment variables."""

import os
from pathlib import Path

_REPO_ROOT = Path(__file__).resolve().parent

# Data directory; default "data" under repo root, overridable via DATA_DIR env
DATA_DIR = Path(os.environ["DATA_DIR"]) if os.environ.get("DATA_DIR") else _REPO_ROOT / "data"

# LLM model used for every text task (README summary, file synopsis, labeling, deep-dive).
LLM_MODEL: str = os.environ.get("LLM_MODEL") or os.environ.get("OPENAI_MODEL") or "gpt-4o-mini"

# Embedding model used to vectorise file synopses.
EMBEDDING_MODEL: str = os.environ.get("EMBEDDING_MODEL", "text-embedding-3-small")

# Low temperature keeps labeling and synopses close to deterministic.
LLM_TEMPERATURE: float = float(os.environ.get("LLM_TEMPERATURE", "0.2"))

# ── Remote content source ─────────────────────────────────────────────────────
GITHUB_TOKEN: str | None = os.environ.get("GITHUB_TOKEN") or None
GITHUB_API_URL: str = os.environ.get("GITHUB_API_URL", "https://api.github.com").rstrip("/")
GITHUB_REQUEST_TIMEOUT_SECONDS: int = int(os.environ.get("GITHUB_REQUEST_TIMEOUT_SECONDS", "30"))

# ── Important-file selection ──────────────────────────────────────────────────
# Selection only runs when the filtered file count exceeds the threshold.
IMPORTANT_FILES_THRESHOLD: int = int(os.environ.get("IMPORTANT_FILES_THRESHOLD", "50"))
IMPORTANT_FILES_CAP: int = int(os.environ.get("IMPORTANT_FILES_CAP", "50"))

# ── Synopsis / embedding fan-out ──────────────────────────────────────────────
# Maximum number of in-flight synopsis or embedding requests.
SYNOPSIS_MAX_CONCURRENCY: int = int(os.environ.get("SYNOPSIS_MAX_CONCURRENCY", "10"))
SYNOPSIS_MAX_WORDS: int = int(os.environ.get("SYNOPSIS_MAX_WORDS", "100"))
# File content is truncated to this many characters before it is read or synopsised.
SYNOPSIS_MAX_INPUT_CHARS: int = int(os.environ.get("SYNOPSIS_MAX_INPUT_CHARS", "200000"))

# ── Vector clustering ─────────────────────────────────────────────────────────
# K = clamp(N // CLUSTER_FILES_PER_CLUSTER, CLUSTER_MIN_K, CLUSTER_MAX_K)
CLUSTER_FILES_PER_CLUSTER: int = int(os.environ.get("CLUSTER_FILES_PER_CLUSTER", "5"))
CLUSTER_MIN_K: int = int(os.environ.get("CLUSTER_MIN_K", "2"))
CLUSTER_MAX_K: int = int(os.environ.get("CLUSTER_MAX_K", "8"))
CLUSTER_RANDOM_STATE: int = int(os.environ.get("CLUSTER_RANDOM_STATE", "0"))

# ── Subsystem labeling ────────────────────────────────────────────────────────
# Requested subsystem count for the path-based labeler.
PATH_SUBSYSTEM_MIN: int = int(os.environ.get("PATH_SUBSYSTEM_MIN", "3"))
PATH_SUBSYSTEM_MAX: int = int(os.environ.get("PATH_SUBSYSTEM_MAX", "8"))

# How orphaned paths in path-based labels are handled: "reject", "drop" or "catch_all".
PARTITION_POLICY: str = os.environ.get("PARTITION_POLICY", "catch_all").strip().lower()
CATCH_ALL_SUBSYSTEM_TITLE: str = os.environ.get("CATCH_ALL_SUBSYSTEM_TITLE", "Other Files")

# When true, a cluster whose labeling call fails gets a title derived from its paths
# instead of being dropped from the final subsystem list.
CLUSTER_LABEL_FALLBACK: bool = os.environ.get("CLUSTER_LABEL_FALLBACK", "true").strip().lower() in (
    "1", "true", "yes", "on",
)

# ── Subsystem deep-dive ───────────────────────────────────────────────────────
DETAIL_FETCH_MAX_CONCURRENCY: int = int(os.environ.get("DETAIL_FETCH_MAX_CONCURRENCY", "10"))

# Wall-clock budget (seconds) for one generation run; nothing is persisted on expiry.
PIPELINE_TIMEOUT_SECONDS: int = int(os.environ.get("PIPELINE_TIMEOUT_SECONDS", "300"))
