"""Narrative summary of a repository from its README."""

import logging

from constants import SYNOPSIS_MAX_INPUT_CHARS, SYNOPSIS_MAX_WORDS
from repo_wiki.prompts import README_SUMMARY_SYSTEM_PROMPT, SHORT_SUMMARY_SYSTEM_PROMPT
from repo_wiki.utils.async_openai import OpenAIRequest, run_batch

logger = logging.getLogger(__name__)


def summarize_readme(readme: str, *, timeout: float | None = None) -> str:
    """Markdown overview of the README; empty when there is no README or the call fails."""
    if not readme.strip():
        return ""
    request = OpenAIRequest(
        system_prompt=README_SUMMARY_SYSTEM_PROMPT,
        user_prompt=readme[:SYNOPSIS_MAX_INPUT_CHARS],
    )
    return _generate_or_empty(request, what="README summary", timeout=timeout)


def shorten_summary(summary: str, *, timeout: float | None = None) -> str:
    """Plain-text blurb of at most SYNOPSIS_MAX_WORDS words."""
    if not summary.strip():
        return ""
    request = OpenAIRequest(
        system_prompt=SHORT_SUMMARY_SYSTEM_PROMPT.format(max_words=SYNOPSIS_MAX_WORDS),
        user_prompt=summary,
    )
    return _generate_or_empty(request, what="Short summary", timeout=timeout)


def _generate_or_empty(request: OpenAIRequest, *, what: str, timeout: float | None) -> str:
    result = run_batch([request], max_concurrency=1, timeout=timeout)[0]
    if isinstance(result, Exception):
        logger.warning("%s failed: %s", what, result)
        return ""
    return result.strip()
