"""Drive a wiki generation run end to end.

Two strategies produce the same page shape:

* structural: filter the tree, bucket paths by top-level folder, label the
  buckets in a single call;
* content-based: filter a snapshot, optionally keep only important files,
  synopsize and embed every file, cluster the vectors, then label each
  cluster.

Stages run strictly in sequence. The store is written once, after the last
stage succeeds, so a failed or timed-out run leaves the previous wiki intact.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor

from constants import (
    CLUSTER_LABEL_FALLBACK,
    DETAIL_FETCH_MAX_CONCURRENCY,
    IMPORTANT_FILES_CAP,
    IMPORTANT_FILES_THRESHOLD,
    PARTITION_POLICY,
    PIPELINE_TIMEOUT_SECONDS,
    SYNOPSIS_MAX_CONCURRENCY,
)
from repo_wiki.db import DBAdapter
from repo_wiki.db_managers import SubsystemManager, WikiFileSpec, WikiManager
from repo_wiki.errors import NoValidFilesError, NotFoundError, PipelineError, PipelineTimeoutError
from repo_wiki.models import Cluster, FileRecord, SubsystemSpec
from repo_wiki.prompts import SUBSYSTEM_DETAIL_SYSTEM_PROMPT
from repo_wiki.services.file.embedding import embed_all
from repo_wiki.services.file.importance import select_important
from repo_wiki.services.file.synopsis import synopsize_all
from repo_wiki.services.source import GitHubSource, RepoRef, parse_github_url
from repo_wiki.services.subsystem.clusterer import build_clusters, cluster
from repo_wiki.services.subsystem.labeler import (
    fallback_label,
    group_by_top_level,
    label_clusters,
    label_from_paths,
)
from repo_wiki.services.wiki.summary import shorten_summary, summarize_readme
from repo_wiki.utils.async_openai import OpenAIRequest, complete
from repo_wiki.utils.file_filter import filter_files

logger = logging.getLogger(__name__)


class _Deadline:
    """Wall-clock budget shared by every stage of one run."""

    def __init__(self, seconds: float):
        self._seconds = seconds
        self._expires_at = time.monotonic() + seconds

    def remaining(self) -> float:
        return max(0.0, self._expires_at - time.monotonic())

    def check(self, stage: str) -> float:
        """Return the remaining seconds, raising once the budget is spent."""
        remaining = self.remaining()
        if remaining <= 0:
            raise PipelineTimeoutError(f"Run exceeded {self._seconds}s before stage '{stage}'")
        return remaining


class WikiGenerator:
    """Generates wiki pages and subsystem deep-dives for GitHub repositories."""

    def __init__(
        self,
        adapter: DBAdapter,
        source: GitHubSource | None = None,
        *,
        timeout_seconds: float = PIPELINE_TIMEOUT_SECONDS,
        partition_policy: str = PARTITION_POLICY,
        label_fallback: bool = CLUSTER_LABEL_FALLBACK,
    ):
        self._adapter = adapter
        self._source = source or GitHubSource()
        self._timeout_seconds = timeout_seconds
        self._partition_policy = partition_policy
        self._label_fallback = label_fallback

    # ── Entry points ─────────────────────────────────────────────────────────

    def generate_from_paths(self, repo_url: str) -> int:
        """Structural strategy; returns the wiki page id."""
        ref = parse_github_url(repo_url)
        deadline = _Deadline(self._timeout_seconds)
        logger.info("Structural generation started repo=%s", ref.full_name)
        try:
            branch = self._source.get_default_branch(ref)
            summary, short_summary = self._narrative(ref, deadline)

            deadline.check("tree")
            paths = [f.path for f in filter_files(FileRecord(path=p) for p in self._source.get_tree(ref, branch))]
            if not paths:
                raise NoValidFilesError(f"No valid files found in {ref.full_name}")

            remaining = deadline.check("label")
            subsystems = label_from_paths(
                group_by_top_level(paths),
                summary,
                policy=self._partition_policy,
                timeout=remaining,
            )
            deadline.check("persist")
        except TimeoutError as exc:
            raise PipelineTimeoutError(f"Structural generation timed out for {ref.full_name}") from exc

        page_id = self._save(ref, branch, summary, short_summary, subsystems)
        logger.info(
            "Structural generation done repo=%s page_id=%d paths=%d subsystems=%d",
            ref.full_name, page_id, len(paths), len(subsystems),
        )
        return page_id

    def generate_from_content(self, repo_url: str) -> int:
        """Content-based strategy; returns the wiki page id."""
        ref = parse_github_url(repo_url)
        deadline = _Deadline(self._timeout_seconds)
        logger.info("Content generation started repo=%s", ref.full_name)
        try:
            branch = self._source.get_default_branch(ref)
            summary, short_summary = self._narrative(ref, deadline)

            deadline.check("snapshot")
            files = filter_files(self._source.fetch_snapshot(repo_url, branch))
            if not files:
                raise NoValidFilesError(f"No valid files found in {ref.full_name}")

            if len(files) > IMPORTANT_FILES_THRESHOLD:
                remaining = deadline.check("select")
                files = select_important(files, IMPORTANT_FILES_CAP, timeout=remaining)

            remaining = deadline.check("synopsis")
            files = synopsize_all(files, max_concurrency=SYNOPSIS_MAX_CONCURRENCY, timeout=remaining)
            files = [f for f in files if f.synopsis]
            if not files:
                raise NoValidFilesError(f"No file synopses could be generated for {ref.full_name}")

            remaining = deadline.check("embed")
            files = embed_all(files, max_concurrency=SYNOPSIS_MAX_CONCURRENCY, timeout=remaining)

            deadline.check("cluster")
            result = cluster([list(f.embedding) for f in files])
            clusters = [c for c in build_clusters(files, result) if c.members]

            remaining = deadline.check("label")
            subsystems = self._label(clusters, timeout=remaining)
            deadline.check("persist")
        except TimeoutError as exc:
            raise PipelineTimeoutError(f"Content generation timed out for {ref.full_name}") from exc

        file_specs = [
            WikiFileSpec(path=f.path, synopsis=f.synopsis or "", embedding=f.embedding)
            for f in files
        ]
        page_id = self._save(ref, branch, summary, short_summary, subsystems, file_specs)
        logger.info(
            "Content generation done repo=%s page_id=%d files=%d clusters=%d subsystems=%d",
            ref.full_name, page_id, len(files), len(clusters), len(subsystems),
        )
        return page_id

    def generate_subsystem_detail(self, subsystem_id: int) -> dict[str, object]:
        """Write the deep-dive summary for one subsystem and store it."""
        with self._adapter.session() as session:
            subsystem = SubsystemManager(session).get(subsystem_id)
            if subsystem is None:
                raise NotFoundError(f"Subsystem not found: {subsystem_id}")
            page = WikiManager(session).get_page(subsystem.page_id)
            if page is None:
                raise NotFoundError(f"Wiki page not found for subsystem {subsystem_id}")
            title = subsystem.title
            paths = subsystem.get_files()
            repo_url = page.repo_url

        ref = parse_github_url(repo_url)
        with ThreadPoolExecutor(max_workers=DETAIL_FETCH_MAX_CONCURRENCY) as pool:
            contents = list(pool.map(lambda p: self._source.get_file_content(ref, p), paths))
        files = [
            FileRecord(path=path, content=content)
            for path, content in zip(paths, contents)
            if content and content.strip()
        ]
        if not files:
            raise NoValidFilesError("No valid files found")

        request = OpenAIRequest(
            system_prompt=SUBSYSTEM_DETAIL_SYSTEM_PROMPT,
            user_prompt=_build_detail_prompt(title, files),
        )
        try:
            summary = complete(request).strip()
        except Exception as exc:
            raise PipelineError(f"Subsystem summary failed for {subsystem_id}: {exc}") from exc

        with self._adapter.session() as session:
            if SubsystemManager(session).update_summary(subsystem_id, summary) is None:
                raise NotFoundError(f"Subsystem not found: {subsystem_id}")

        logger.info(
            "Subsystem detail done subsystem_id=%d files_processed=%d total_files=%d",
            subsystem_id, len(files), len(paths),
        )
        return {
            "summary": summary,
            "files_processed": len(files),
            "total_files": len(paths),
        }

    # ── Stages ───────────────────────────────────────────────────────────────

    def _narrative(self, ref: RepoRef, deadline: _Deadline) -> tuple[str, str]:
        readme = self._source.get_readme(ref)
        summary = summarize_readme(readme, timeout=deadline.check("readme"))
        short_summary = shorten_summary(summary, timeout=deadline.check("short_summary"))
        return summary, short_summary

    def _label(self, clusters: list[Cluster], *, timeout: float) -> list[SubsystemSpec]:
        labels = label_clusters([c.members for c in clusters], timeout=timeout)
        subsystems: list[SubsystemSpec] = []
        for idx, (c, label) in enumerate(zip(clusters, labels)):
            paths = [f.path for f in c.members]
            if label is None:
                if not self._label_fallback:
                    logger.warning("Dropping unlabeled cluster=%d files=%d", idx, len(paths))
                    continue
                label = fallback_label(paths, idx)
                logger.info("Fallback label cluster=%d title=%s", idx, label["title"])
            subsystems.append(SubsystemSpec(
                title=label["title"],
                short_summary=label["short_summary"],
                files=paths,
            ))
        return subsystems

    def _save(
        self,
        ref: RepoRef,
        branch: str,
        summary: str,
        short_summary: str,
        subsystems: list[SubsystemSpec],
        files: list[WikiFileSpec] | None = None,
    ) -> int:
        repo_url = canonical_repo_url(ref)
        with self._adapter.session() as session:
            manager = WikiManager(session)
            page = manager.get_by_repo_url(repo_url)
            fields = dict(
                branch=branch,
                title=ref.full_name,
                summary=summary,
                short_summary=short_summary,
                subsystems=subsystems,
                files=files,
            )
            if page is None:
                page = manager.create_page(repo_url=repo_url, **fields)
            else:
                logger.info("Replacing existing wiki page_id=%d repo=%s", page.page_id, ref.full_name)
                page = manager.replace_page(page, **fields)
            return page.page_id


def canonical_repo_url(ref: RepoRef) -> str:
    """One URL per repository, whatever form the caller used."""
    return f"https://github.com/{ref.owner}/{ref.repo}"


def _build_detail_prompt(title: str, files: list[FileRecord]) -> str:
    parts = [f"SUBSYSTEM: {title}", ""]
    for f in files:
        parts.append(f"FILE: {f.path}")
        parts.append(f.content)
        parts.append("")
    return "\n".join(parts)
