"""Reduce a large file set to the paths that best explain the repository.

Only paths are sent to the model, never content. The model's answer is
untrusted: every returned path is checked against the input before use.
"""

import logging

from constants import IMPORTANT_FILES_CAP
from repo_wiki.errors import NoValidFilesError, PipelineError
from repo_wiki.models import FileRecord
from repo_wiki.prompts import IMPORTANT_FILES_SYSTEM_PROMPT
from repo_wiki.utils.async_openai import OpenAIRequest, run_batch
from repo_wiki.utils.llm_json import ensure_string_list, loads_json

logger = logging.getLogger(__name__)


def select_important(
    files: list[FileRecord],
    cap: int = IMPORTANT_FILES_CAP,
    *,
    timeout: float | None = None,
) -> list[FileRecord]:
    """Ask the model for at most ``cap`` important files and validate its answer.

    Returned records keep their input order and original casing. Raises
    NoValidFilesError when nothing in the answer matches the input.
    """
    if not files:
        raise NoValidFilesError("No files to select from")

    request = OpenAIRequest(
        system_prompt=IMPORTANT_FILES_SYSTEM_PROMPT.format(max_files=cap),
        user_prompt=_build_user_prompt(files, cap),
    )
    result = run_batch([request], max_concurrency=1, timeout=timeout)[0]
    if isinstance(result, Exception):
        raise PipelineError(f"Important file selection failed: {result}") from result

    try:
        returned = _parse_paths(result)
    except ValueError as exc:
        logger.warning("Important file selection returned invalid JSON: %s", exc)
        returned = []

    selected = validate_selection(files, returned, cap=cap)
    if not selected:
        raise NoValidFilesError("Important file selection matched no input files")
    logger.info("Important files selected=%d of %d (returned=%d)", len(selected), len(files), len(returned))
    return selected


def validate_selection(files: list[FileRecord], returned: list[str], *, cap: int) -> list[FileRecord]:
    """Keep returned paths that exist in ``files``, mapped back to the input records.

    An exact match wins; otherwise the path is matched case-insensitively.
    """
    by_exact: dict[str, int] = {}
    by_lower: dict[str, int] = {}
    for idx, f in enumerate(files):
        by_exact.setdefault(f.path.strip(), idx)
        by_lower.setdefault(f.path.strip().lower(), idx)

    chosen: list[int] = []
    seen: set[int] = set()
    invented = 0
    for path in returned:
        idx = by_exact.get(path.strip())
        if idx is None:
            idx = by_lower.get(path.strip().lower())
        if idx is None:
            invented += 1
            continue
        if idx in seen:
            continue
        seen.add(idx)
        chosen.append(idx)
        if len(chosen) >= cap:
            break

    if invented:
        logger.warning("Important file selection discarded %d unknown paths", invented)
    return [files[idx] for idx in sorted(chosen)]


def _build_user_prompt(files: list[FileRecord], cap: int) -> str:
    lines: list[str] = [
        f"Select at most {cap} of these {len(files)} repository files.",
        "Return only JSON.",
        "",
    ]
    lines.extend(f.path for f in files)
    return "\n".join(lines)


def _parse_paths(text: str) -> list[str]:
    """Accept ``["a", ...]``, ``[{"path": "a"}, ...]`` or ``{"files": [...]}``."""
    parsed = loads_json(text)
    if isinstance(parsed, dict):
        parsed = parsed.get("files") or parsed.get("paths") or []
    if not isinstance(parsed, list):
        raise ValueError("Expected JSON list of paths.")
    paths: list[str] = []
    for item in parsed:
        if isinstance(item, dict):
            paths.extend(ensure_string_list(item.get("path")))
        elif isinstance(item, str):
            paths.append(item)
    return paths
