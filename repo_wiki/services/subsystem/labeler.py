"""Name subsystems from a path map (structural) or from a file cluster (content-based).

Model output is untrusted. Every response is parsed into a strict shape
first; a shape mismatch is a LabelParseError, which the entry points turn
into an empty result instead of failing the run.
"""

import logging
import posixpath

from constants import (
    CATCH_ALL_SUBSYSTEM_TITLE,
    PARTITION_POLICY,
    PATH_SUBSYSTEM_MAX,
    PATH_SUBSYSTEM_MIN,
)
from repo_wiki.errors import LabelParseError, PipelineError
from repo_wiki.models import FileRecord, SubsystemLabel, SubsystemSpec
from repo_wiki.prompts import CLUSTER_LABEL_SYSTEM_PROMPT, PATH_SUBSYSTEMS_SYSTEM_PROMPT
from repo_wiki.utils.async_openai import OpenAIRequest, run_batch
from repo_wiki.utils.llm_json import loads_json

logger = logging.getLogger(__name__)

PARTITION_POLICIES = ("reject", "drop", "catch_all")

# Files named in a fallback summary before it is cut short.
_FALLBACK_SUMMARY_FILES = 5


class PartitionViolation(ValueError):
    """Labeled subsystems do not cover the input paths (raised under the reject policy)."""


# ── Structural ───────────────────────────────────────────────────────────────


def group_by_top_level(paths: list[str]) -> dict[str, list[str]]:
    """Bucket paths by their first segment; root-level files share the "" bucket."""
    buckets: dict[str, list[str]] = {}
    for path in paths:
        head, sep, _ = path.partition("/")
        key = head if sep else ""
        buckets.setdefault(key, []).append(path)
    return buckets


def label_from_paths(
    path_buckets: dict[str, list[str]],
    readme_summary: str,
    *,
    policy: str = PARTITION_POLICY,
    timeout: float | None = None,
) -> list[SubsystemSpec]:
    """Ask for feature-oriented subsystems covering every bucketed path once.

    An unparseable reply, or a partition rejected by ``policy``, yields ``[]``.
    A failed call raises PipelineError.
    """
    if policy not in PARTITION_POLICIES:
        raise ValueError(f"Unknown partition policy: {policy!r}")

    input_paths = [p for bucket in path_buckets.values() for p in bucket]
    if not input_paths:
        return []

    request = OpenAIRequest(
        system_prompt=PATH_SUBSYSTEMS_SYSTEM_PROMPT.format(
            min_subsystems=PATH_SUBSYSTEM_MIN,
            max_subsystems=PATH_SUBSYSTEM_MAX,
        ),
        user_prompt=_build_paths_prompt(path_buckets, readme_summary),
    )
    logger.debug("Path labeling prompt chars=%d paths=%d", len(request.user_prompt), len(input_paths))
    result = run_batch([request], max_concurrency=1, timeout=timeout)[0]
    if isinstance(result, Exception):
        raise PipelineError(f"Subsystem labeling failed: {result}") from result

    try:
        specs = parse_path_subsystems(result)
    except LabelParseError as exc:
        logger.warning("Subsystem labeling returned invalid output: %s", exc)
        return []

    try:
        specs = enforce_partition(specs, input_paths, policy=policy)
    except PartitionViolation as exc:
        logger.warning("Subsystem labeling rejected: %s", exc)
        return []

    if not PATH_SUBSYSTEM_MIN <= len(specs) <= PATH_SUBSYSTEM_MAX:
        logger.info(
            "Subsystem count outside requested range count=%d range=%d-%d",
            len(specs), PATH_SUBSYSTEM_MIN, PATH_SUBSYSTEM_MAX,
        )
    logger.info("Path labeling done subsystems=%d paths=%d", len(specs), len(input_paths))
    return specs


def parse_path_subsystems(text: str) -> list[SubsystemSpec]:
    """Parse ``[{"title", "shortSummary", "files"}, ...]`` strictly."""
    try:
        parsed = loads_json(text)
    except ValueError as exc:
        raise LabelParseError(f"Invalid JSON: {exc}") from exc
    if isinstance(parsed, dict) and isinstance(parsed.get("subsystems"), list):
        parsed = parsed["subsystems"]
    if not isinstance(parsed, list):
        raise LabelParseError("Expected a JSON array of subsystems.")

    specs: list[SubsystemSpec] = []
    for idx, item in enumerate(parsed):
        if not isinstance(item, dict):
            raise LabelParseError(f"Subsystem {idx} is not an object.")
        title = _require_title(item, idx)
        files = item.get("files")
        if not isinstance(files, list) or not all(isinstance(f, str) for f in files):
            raise LabelParseError(f"Subsystem {idx} has no list of file paths.")
        specs.append(SubsystemSpec(
            title=title,
            short_summary=_short_summary(item),
            files=[f.strip() for f in files if f.strip()],
        ))
    return specs


def enforce_partition(
    specs: list[SubsystemSpec],
    input_paths: list[str],
    *,
    policy: str = PARTITION_POLICY,
    catch_all_title: str = CATCH_ALL_SUBSYSTEM_TITLE,
) -> list[SubsystemSpec]:
    """Make ``specs`` a partition of ``input_paths``.

    Unknown paths are dropped, a duplicated path stays with its first
    subsystem and emptied subsystems are removed. Orphans are then handled
    by ``policy``.
    """
    exact = set(input_paths)
    by_lower: dict[str, str] = {}
    for path in input_paths:
        by_lower.setdefault(path.lower(), path)

    claimed: set[str] = set()
    invented = 0
    duplicates = 0
    result: list[SubsystemSpec] = []
    for spec in specs:
        files: list[str] = []
        for path in spec["files"]:
            original = path if path in exact else by_lower.get(path.lower())
            if original is None:
                invented += 1
                continue
            if original in claimed:
                duplicates += 1
                continue
            claimed.add(original)
            files.append(original)
        if files:
            result.append(SubsystemSpec(title=spec["title"], short_summary=spec["short_summary"], files=files))

    orphans = [p for p in dict.fromkeys(input_paths) if p not in claimed]
    if invented or duplicates or orphans:
        logger.warning(
            "Partition repaired invented=%d duplicates=%d orphans=%d policy=%s",
            invented, duplicates, len(orphans), policy,
        )

    if orphans:
        if policy == "reject":
            raise PartitionViolation(f"{len(orphans)} input paths were not assigned to any subsystem")
        if policy == "catch_all":
            result.append(SubsystemSpec(
                title=catch_all_title,
                short_summary="Files not assigned to any other subsystem.",
                files=orphans,
            ))
    return result


def _build_paths_prompt(path_buckets: dict[str, list[str]], readme_summary: str) -> str:
    lines: list[str] = []
    if readme_summary.strip():
        lines.extend(["README SUMMARY:", readme_summary.strip(), ""])
    lines.append("FILES BY TOP-LEVEL FOLDER:")
    for folder, paths in path_buckets.items():
        lines.append(f"[{folder or '(root)'}]")
        lines.extend(f"- {p}" for p in paths)
    return "\n".join(lines)


# ── Content-based ────────────────────────────────────────────────────────────


def label_from_cluster(files: list[FileRecord], *, timeout: float | None = None) -> SubsystemLabel | None:
    """Return one title and short summary for a cluster, or None on failure."""
    return label_clusters([files], timeout=timeout)[0]


def label_clusters(
    clusters: list[list[FileRecord]],
    *,
    timeout: float | None = None,
) -> list[SubsystemLabel | None]:
    """Label every cluster concurrently; results match input order.

    A failed call or unparseable reply leaves ``None`` in that slot.
    """
    if not clusters:
        return []
    requests = [
        OpenAIRequest(system_prompt=CLUSTER_LABEL_SYSTEM_PROMPT, user_prompt=_build_cluster_prompt(members))
        for members in clusters
    ]
    results = run_batch(requests, max_concurrency=len(requests), timeout=timeout)

    labels: list[SubsystemLabel | None] = []
    for idx, result in enumerate(results):
        if isinstance(result, Exception):
            logger.warning("Cluster labeling failed cluster=%d: %s", idx, result)
            labels.append(None)
            continue
        try:
            labels.append(parse_cluster_label(result))
        except LabelParseError as exc:
            logger.warning("Cluster labeling returned invalid output cluster=%d: %s", idx, exc)
            labels.append(None)
    return labels


def parse_cluster_label(text: str) -> SubsystemLabel:
    """Parse ``{"title", "shortSummary"}``; a one-item array is unwrapped."""
    try:
        parsed = loads_json(text)
    except ValueError as exc:
        raise LabelParseError(f"Invalid JSON: {exc}") from exc
    if isinstance(parsed, list) and len(parsed) == 1:
        parsed = parsed[0]
    if not isinstance(parsed, dict):
        raise LabelParseError("Expected a JSON object.")
    return SubsystemLabel(title=_require_title(parsed, 0), short_summary=_short_summary(parsed))


def fallback_label(paths: list[str], index: int) -> SubsystemLabel:
    """Label derived from member paths, for clusters the model could not name."""
    dirs = [posixpath.dirname(p) for p in paths]
    prefix = ""
    if dirs and all(dirs):
        try:
            prefix = posixpath.commonpath(dirs)
        except ValueError:
            prefix = ""
    title = prefix or f"Cluster {index + 1}"

    names = [posixpath.basename(p) for p in paths[:_FALLBACK_SUMMARY_FILES]]
    summary = "Files: " + ", ".join(names)
    if len(paths) > _FALLBACK_SUMMARY_FILES:
        summary += f" and {len(paths) - _FALLBACK_SUMMARY_FILES} more"
    return SubsystemLabel(title=title, short_summary=summary)


def _build_cluster_prompt(files: list[FileRecord]) -> str:
    lines = [f"Files in this subsystem ({len(files)}):", ""]
    for f in files:
        lines.append(f"PATH: {f.path}")
        lines.append(f"SYNOPSIS: {f.synopsis or ''}")
        lines.append("")
    return "\n".join(lines).rstrip()


# ── Shared ───────────────────────────────────────────────────────────────────


def _require_title(item: dict, idx: int) -> str:
    title = item.get("title")
    if not isinstance(title, str) or not title.strip():
        raise LabelParseError(f"Subsystem {idx} has no title.")
    return title.strip()


def _short_summary(item: dict) -> str:
    value = item.get("shortSummary", item.get("short_summary"))
    return value.strip() if isinstance(value, str) else ""
