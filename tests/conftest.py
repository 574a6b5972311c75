"""Shared pytest fixtures for wiki generation tests."""

import time
import uuid
from contextlib import contextmanager
from typing import Callable
from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

from repo_wiki.models import Base, FileRecord, Subsystem, WikiPage
from repo_wiki.prompts import (
    CLUSTER_LABEL_SYSTEM_PROMPT,
    FILE_SYNOPSIS_SYSTEM_PROMPT,
    IMPORTANT_FILES_SYSTEM_PROMPT,
    PATH_SUBSYSTEMS_SYSTEM_PROMPT,
    README_SUMMARY_SYSTEM_PROMPT,
    SHORT_SUMMARY_SYSTEM_PROMPT,
    SUBSYSTEM_DETAIL_SYSTEM_PROMPT,
)
from repo_wiki.utils.async_openai import OpenAIRequest


# ---------------------------------------------------------------------------
# In-memory SQLite engine + session factory
#
# A named shared-cache in-memory database lets every connection (including
# the ones opened by ThreadPoolExecutor workers) see the same data. Each test
# gets a unique name so tests are isolated from each other.
# ---------------------------------------------------------------------------

@pytest.fixture(scope="function")
def engine():
    """Fresh shared-cache in-memory SQLite engine per test."""
    db_name = f"test_{uuid.uuid4().hex}"
    url = f"file:{db_name}?mode=memory&cache=shared"
    eng = create_engine(
        f"sqlite:///{url}",
        connect_args={"check_same_thread": False, "uri": True},
    )
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture(scope="function")
def _session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture(scope="function")
def session(_session_factory) -> Session:
    """Main test session; closed (not rolled back) after each test so that
    data committed through the adapter stays visible to assertions."""
    s = _session_factory()
    yield s
    s.close()


# ---------------------------------------------------------------------------
# DB adapter mock: one new session per .session() call, same in-memory DB
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_adapter(_session_factory):
    adapter = MagicMock()

    @contextmanager
    def thread_safe_session():
        s = _session_factory()
        try:
            yield s
            s.commit()
        except Exception:
            s.rollback()
            raise
        finally:
            s.close()

    adapter.session.side_effect = thread_safe_session
    return adapter


# ---------------------------------------------------------------------------
# Model factory helpers
# ---------------------------------------------------------------------------

def make_wiki_page(
    session: Session,
    *,
    repo_url: str = "https://github.com/testowner/testrepo",
    branch: str = "main",
    title: str = "testowner/testrepo",
    summary: str = "A test repository.",
    short_summary: str = "Test repo.",
) -> WikiPage:
    now = int(time.time())
    page = WikiPage(
        repo_url=repo_url,
        branch=branch,
        title=title,
        summary=summary,
        short_summary=short_summary,
        created_at=now,
        updated_at=now,
    )
    session.add(page)
    session.flush()
    return page


def make_subsystem(
    session: Session,
    page: WikiPage,
    *,
    title: str = "Core",
    short_summary: str = "Core subsystem",
    files: list[str] | None = None,
) -> Subsystem:
    sub = Subsystem(
        page_id=page.page_id,
        title=title,
        short_summary=short_summary,
        summary=None,
    )
    sub.set_files(files or [])
    session.add(sub)
    session.flush()
    return sub


def make_files(paths: list[str], *, content: str = "print('hello')\n") -> list[FileRecord]:
    return [FileRecord(path=p, content=f"# {p}\n{content}") for p in paths]


def make_source(
    *,
    branch: str = "main",
    tree: list[str] | None = None,
    readme: str = "# Test repo\nDoes things.",
    snapshot: list[FileRecord] | None = None,
    contents: dict[str, str | None] | None = None,
) -> MagicMock:
    """MagicMock standing in for GitHubSource."""
    source = MagicMock()
    source.get_default_branch.return_value = branch
    source.get_tree.return_value = list(tree or [])
    source.get_readme.return_value = readme
    source.fetch_snapshot.return_value = list(snapshot or [])
    file_contents = contents or {}
    source.get_file_content.side_effect = lambda ref, path: file_contents.get(path)
    return source


# ---------------------------------------------------------------------------
# Language model fake
#
# Routes every request by its system prompt to a per-task responder. A
# responder takes the OpenAIRequest and returns text, or an Exception that
# lands in the result slot exactly as a failed call would.
# ---------------------------------------------------------------------------

_PROMPT_KINDS: dict[str, str] = {
    "readme": README_SUMMARY_SYSTEM_PROMPT,
    "short_summary": SHORT_SUMMARY_SYSTEM_PROMPT,
    "important": IMPORTANT_FILES_SYSTEM_PROMPT,
    "synopsis": FILE_SYNOPSIS_SYSTEM_PROMPT,
    "paths": PATH_SUBSYSTEMS_SYSTEM_PROMPT,
    "cluster": CLUSTER_LABEL_SYSTEM_PROMPT,
    "detail": SUBSYSTEM_DETAIL_SYSTEM_PROMPT,
}


def prompt_kind(system_prompt: str) -> str:
    first_line = system_prompt.split("\n", 1)[0]
    for kind, template in _PROMPT_KINDS.items():
        if template.split("\n", 1)[0] == first_line:
            return kind
    raise AssertionError(f"Unknown system prompt: {first_line!r}")


class FakeLLM:
    """Drop-in for run_batch / embed_batch that records every call."""

    def __init__(self) -> None:
        self.responders: dict[str, Callable[[OpenAIRequest], str | Exception]] = {
            "readme": lambda req: "## Overview\nA test repository.",
            "short_summary": lambda req: "A test repository.",
            "synopsis": lambda req: f"Synopsis of {req.user_prompt.splitlines()[0]}",
            "cluster": lambda req: '{"title": "Cluster Subsystem", "shortSummary": "Related files."}',
            "detail": lambda req: "# Deep dive\nDetails.",
        }
        self.embedder: Callable[[str], list[float] | Exception] = lambda text: [1.0, 0.0]
        self.calls: list[tuple[str, OpenAIRequest]] = []
        self.embed_calls: list[str] = []

    def on(self, kind: str, responder: Callable[[OpenAIRequest], str | Exception]) -> None:
        self.responders[kind] = responder

    def run_batch(self, requests, *, max_concurrency, timeout=None):
        results = []
        for req in requests:
            kind = prompt_kind(req.system_prompt)
            self.calls.append((kind, req))
            responder = self.responders.get(kind)
            if responder is None:
                results.append(RuntimeError(f"No responder for {kind}"))
                continue
            results.append(responder(req))
        return results

    def embed_batch(self, texts, *, model=None, max_concurrency, timeout=None):
        self.embed_calls.extend(texts)
        return [self.embedder(t) for t in texts]

    def complete(self, request):
        result = self.run_batch([request], max_concurrency=1)[0]
        if isinstance(result, Exception):
            raise result
        return result

    def kinds(self) -> list[str]:
        return [kind for kind, _ in self.calls]


@pytest.fixture
def fake_llm(monkeypatch) -> FakeLLM:
    """Patch every module-level capability import with one FakeLLM."""
    llm = FakeLLM()
    for module_path in [
        "repo_wiki.services.file.importance",
        "repo_wiki.services.file.synopsis",
        "repo_wiki.services.subsystem.labeler",
        "repo_wiki.services.wiki.summary",
    ]:
        monkeypatch.setattr(f"{module_path}.run_batch", llm.run_batch)
    monkeypatch.setattr("repo_wiki.services.file.synopsis.complete", llm.complete)
    monkeypatch.setattr("repo_wiki.services.wiki.generator.complete", llm.complete)
    monkeypatch.setattr("repo_wiki.services.file.embedding.embed_batch", llm.embed_batch)
    return llm
