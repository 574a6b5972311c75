"""Per-file synopses: the text that is embedded and shown to the labeler.

A failed synopsis never aborts the run. Large repositories routinely hold a
few files the model refuses (too many tokens, odd encodings); those files get
an empty synopsis and drop out of clustering.
"""

import dataclasses
import logging

from constants import SYNOPSIS_MAX_CONCURRENCY, SYNOPSIS_MAX_INPUT_CHARS, SYNOPSIS_MAX_WORDS
from repo_wiki.models import FileRecord
from repo_wiki.prompts import FILE_SYNOPSIS_SYSTEM_PROMPT
from repo_wiki.utils.async_openai import OpenAIRequest, complete, run_batch

logger = logging.getLogger(__name__)


def synopsize(content: str, *, path: str | None = None) -> str:
    """Return a synopsis for one file's content (raises on failure)."""
    return complete(_build_request(content, path=path)).strip()


def synopsize_all(
    files: list[FileRecord],
    *,
    max_concurrency: int = SYNOPSIS_MAX_CONCURRENCY,
    timeout: float | None = None,
) -> list[FileRecord]:
    """Return ``files`` with ``synopsis`` filled, index-aligned with the input.

    Files whose call fails, or whose content is blank, get ``synopsis=""``.
    """
    pending = [idx for idx, f in enumerate(files) if f.content.strip()]
    requests = [_build_request(files[idx].content, path=files[idx].path) for idx in pending]
    results = run_batch(requests, max_concurrency=max_concurrency, timeout=timeout)

    synopses = [""] * len(files)
    failed = 0
    for idx, result in zip(pending, results):
        if isinstance(result, Exception):
            failed += 1
            logger.warning("Synopsis failed path=%s: %s", files[idx].path, result)
            continue
        synopses[idx] = result.strip()

    skipped = len(files) - len(pending)
    logger.info(
        "Synopses done total=%d failed=%d blank_skipped=%d",
        len(files), failed, skipped,
    )
    return [dataclasses.replace(f, synopsis=s) for f, s in zip(files, synopses)]


def _build_request(content: str, *, path: str | None) -> OpenAIRequest:
    text = content[:SYNOPSIS_MAX_INPUT_CHARS]
    user_prompt = f"PATH: {path}\n\n{text}" if path else text
    return OpenAIRequest(
        system_prompt=FILE_SYNOPSIS_SYSTEM_PROMPT.format(max_words=SYNOPSIS_MAX_WORDS),
        user_prompt=user_prompt,
    )
