"""GitHub content source: repository metadata over REST, file snapshots via dulwich.

Metadata calls (default branch, tree, single files, README) go through the
GitHub REST API. When many files must be read at once the repository is
shallow-cloned into a temporary directory instead, which avoids one request
per file and the rate limits that come with it.
"""

import base64
import logging
import os
import re
import tempfile
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote, urlparse

import requests
from dulwich import porcelain

from constants import (
    GITHUB_API_URL,
    GITHUB_REQUEST_TIMEOUT_SECONDS,
    GITHUB_TOKEN,
    SYNOPSIS_MAX_INPUT_CHARS,
)
from repo_wiki.errors import InvalidRepoUrlError, NotFoundError
from repo_wiki.models import FileRecord

logger = logging.getLogger(__name__)

_GITHUB_URL_RE = re.compile(r"github\.com/([^/]+)/([^/]+?)(?:\.git)?(?:/|$)")

# Never descended into while reading a snapshot.
_SNAPSHOT_EXCLUDED_FOLDERS: frozenset[str] = frozenset({".git"})


@dataclass(frozen=True)
class RepoRef:
    owner: str
    repo: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


def parse_github_url(repo_url: str | None) -> RepoRef:
    """Parse owner and repo from a GitHub URL, raising InvalidRepoUrlError."""
    if not repo_url or not repo_url.strip():
        raise InvalidRepoUrlError("Missing repository URL")
    url = repo_url.strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidRepoUrlError(f"Invalid repository URL: {url}")
    match = _GITHUB_URL_RE.search(url)
    if not match:
        raise InvalidRepoUrlError(f"Invalid GitHub URL: {url}")
    return RepoRef(owner=match.group(1), repo=match.group(2))


class GitHubSource:
    """Black-box access to a repository hosted on GitHub."""

    def __init__(
        self,
        *,
        token: str | None = GITHUB_TOKEN,
        api_url: str = GITHUB_API_URL,
        timeout: int = GITHUB_REQUEST_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ):
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        })
        if token:
            self._session.headers["Authorization"] = f"Bearer {token}"

    # ── REST metadata ────────────────────────────────────────────────────────

    def get_default_branch(self, ref: RepoRef) -> str:
        data = self._get_json(f"/repos/{ref.owner}/{ref.repo}", what=f"Repository {ref.full_name}")
        branch = data.get("default_branch") if isinstance(data, dict) else None
        if not isinstance(branch, str) or not branch:
            raise NotFoundError(f"Default branch not found for {ref.full_name}")
        return branch

    def get_tree(self, ref: RepoRef, branch: str) -> list[str]:
        """Return every blob path in the branch's recursive tree."""
        data = self._get_json(
            f"/repos/{ref.owner}/{ref.repo}/git/trees/{branch}",
            params={"recursive": "1"},
            what=f"Tree {ref.full_name}@{branch}",
        )
        if isinstance(data, dict) and data.get("truncated"):
            logger.warning("Tree listing truncated by GitHub repo=%s branch=%s", ref.full_name, branch)
        entries = data.get("tree") if isinstance(data, dict) else None
        return [
            str(entry["path"])
            for entry in (entries or [])
            if isinstance(entry, dict) and entry.get("type") == "blob" and entry.get("path")
        ]

    def get_file_content(self, ref: RepoRef, path: str) -> str | None:
        """Return a file's decoded text, or None if it cannot be fetched as a file."""
        try:
            data = self._get_json(
                f"/repos/{ref.owner}/{ref.repo}/contents/{quote(path)}",
                what=f"File {path}",
            )
        except (NotFoundError, requests.RequestException) as exc:
            logger.warning("Failed to fetch file repo=%s path=%s: %s", ref.full_name, path, exc)
            return None
        if not isinstance(data, dict) or data.get("type") != "file":
            return None
        return _decode_base64(str(data.get("content") or ""))

    def get_readme(self, ref: RepoRef) -> str:
        """Return the README text, or an empty string when the repo has none."""
        try:
            data = self._get_json(f"/repos/{ref.owner}/{ref.repo}/readme", what="README")
        except NotFoundError:
            logger.info("No README for repo=%s", ref.full_name)
            return ""
        if not isinstance(data, dict):
            return ""
        return _decode_base64(str(data.get("content") or ""))

    def _get_json(self, path: str, *, what: str, params: dict[str, str] | None = None) -> object:
        url = f"{self._api_url}{path}"
        logger.debug("GitHub GET %s", url)
        response = self._session.get(url, params=params, timeout=self._timeout)
        if response.status_code == 404:
            raise NotFoundError(f"{what} not found")
        response.raise_for_status()
        return response.json()

    # ── Snapshot ─────────────────────────────────────────────────────────────

    def fetch_snapshot(self, repo_url: str, branch: str | None = None) -> list[FileRecord]:
        """Shallow-clone the repository and return every decodable text file."""
        ref = parse_github_url(repo_url)
        clone_url = f"https://github.com/{ref.owner}/{ref.repo}.git"
        with tempfile.TemporaryDirectory(prefix="repo-wiki-") as tmp:
            target = Path(tmp) / ref.repo
            clone_repo(clone_url, target, branch=branch)
            records = read_snapshot_files(target)
        logger.info("Snapshot read repo=%s files=%d", ref.full_name, len(records))
        return records


def clone_repo(clone_url: str, target: Path, *, branch: str | None = None, depth: int = 1) -> Path:
    """Shallow-clone ``clone_url`` into ``target`` with dulwich."""
    clone_kwargs: dict[str, int | str] = {"depth": depth}
    if branch is not None:
        clone_kwargs["branch"] = branch
    logger.info("Cloning %s branch=%s", clone_url, branch)
    porcelain.clone(clone_url, str(target), **clone_kwargs)
    return target


def read_snapshot_files(root: Path | str, *, max_chars: int = SYNOPSIS_MAX_INPUT_CHARS) -> list[FileRecord]:
    """Walk a checkout and return FileRecords for UTF-8 text files, sorted by path."""
    root = Path(root).resolve()
    if not root.is_dir():
        return []

    records: list[FileRecord] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [d for d in dirnames if d not in _SNAPSHOT_EXCLUDED_FOLDERS]
        for name in filenames:
            full_path = Path(dirpath) / name
            if not full_path.is_file():
                continue
            rel_path = full_path.relative_to(root).as_posix()
            try:
                data = full_path.read_bytes()
            except OSError:
                logger.debug("Unreadable file skipped path=%s", rel_path)
                continue
            if b"\x00" in data[:8192]:
                continue
            try:
                text = data.decode("utf-8")
            except UnicodeDecodeError:
                continue
            if len(text) > max_chars:
                logger.debug("Truncating file %s to %d chars", rel_path, max_chars)
                text = text[:max_chars]
            records.append(FileRecord(path=rel_path, content=text))

    records.sort(key=lambda r: r.path)
    return records


def _decode_base64(content: str) -> str:
    return base64.b64decode(content).decode("utf-8", errors="replace")
