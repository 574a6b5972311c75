"""Tests for repo_wiki.services.wiki.generator: both strategies and the deep-dive."""

import json
import string

import pytest

from repo_wiki.db_managers import SubsystemManager, WikiManager
from repo_wiki.errors import (
    EmbeddingError,
    InvalidRepoUrlError,
    NoValidFilesError,
    NotFoundError,
    PipelineTimeoutError,
)
from repo_wiki.models import Subsystem, WikiFile, WikiPage
from repo_wiki.services.wiki.generator import WikiGenerator, canonical_repo_url
from repo_wiki.services.source import RepoRef
from tests.conftest import make_files, make_source, make_subsystem, make_wiki_page

REPO_URL = "https://github.com/testowner/testrepo"


def _echo_partition(req) -> str:
    groups: dict[str, list[str]] = {}
    for line in req.user_prompt.splitlines():
        if line.startswith("- "):
            path = line[2:]
            groups.setdefault(path.split("/")[0], []).append(path)
    return json.dumps([{"title": k, "shortSummary": "", "files": v} for k, v in groups.items()])


def _path_in(text: str) -> str:
    return text.split("PATH: ", 1)[1].split()[0]


def _near_two_centroids(paths: list[str]):
    """Embedder placing the first half of ``paths`` near (0, 0) and the rest near (10, 0)."""
    half = len(paths) // 2
    index = {p: i for i, p in enumerate(paths)}

    def embed(text: str) -> list[float]:
        i = index[_path_in(text)]
        jitter = i * 0.01
        return [0.0 + jitter, 0.0] if i < half else [10.0 + jitter, 0.0]

    return embed


def _subsystems(session, page_id: int) -> list[Subsystem]:
    return SubsystemManager(session).list_by_page(page_id)


# ── Structural strategy ─────────────────────────────────────────────────────

class TestGenerateFromPaths:
    def test_creates_page_with_full_partition(self, session, mock_adapter, fake_llm) -> None:
        tree = ["src/cli.ts", "src/auth/email.ts", "prisma/schema.prisma", "README.md", "logo.png", "package-lock.json"]
        source = make_source(tree=tree)
        fake_llm.on("paths", _echo_partition)

        page_id = WikiGenerator(mock_adapter, source).generate_from_paths(REPO_URL)

        page = session.get(WikiPage, page_id)
        assert page.title == "testowner/testrepo"
        assert page.branch == "main"
        assert page.summary == "## Overview\nA test repository."
        assert page.short_summary == "A test repository."
        covered = [p for s in _subsystems(session, page_id) for p in s.get_files()]
        assert sorted(covered) == sorted(["src/cli.ts", "src/auth/email.ts", "prisma/schema.prisma", "README.md"])
        assert all(s.summary is None for s in _subsystems(session, page_id))
        source.get_tree.assert_called_once_with(RepoRef("testowner", "testrepo"), "main")

    def test_parse_failure_still_creates_page(self, session, mock_adapter, fake_llm) -> None:
        source = make_source(tree=["a.py", "b.py"])
        fake_llm.on("paths", lambda req: "not json")

        page_id = WikiGenerator(mock_adapter, source).generate_from_paths(REPO_URL)

        assert session.get(WikiPage, page_id) is not None
        assert _subsystems(session, page_id) == []

    def test_no_valid_files(self, session, mock_adapter, fake_llm) -> None:
        source = make_source(tree=["logo.png", "dist/app.js"])

        with pytest.raises(NoValidFilesError):
            WikiGenerator(mock_adapter, source).generate_from_paths(REPO_URL)

        assert session.query(WikiPage).count() == 0
        assert "paths" not in fake_llm.kinds()

    def test_invalid_url_makes_no_calls(self, mock_adapter, fake_llm) -> None:
        source = make_source()

        with pytest.raises(InvalidRepoUrlError):
            WikiGenerator(mock_adapter, source).generate_from_paths("https://gitlab.com/a/b")

        source.get_default_branch.assert_not_called()
        assert fake_llm.calls == []

    def test_missing_readme_gives_empty_summary(self, session, mock_adapter, fake_llm) -> None:
        source = make_source(tree=["a.py"], readme="")
        fake_llm.on("paths", _echo_partition)

        page_id = WikiGenerator(mock_adapter, source).generate_from_paths(REPO_URL)

        page = session.get(WikiPage, page_id)
        assert page.summary == ""
        assert page.short_summary == ""
        assert "readme" not in fake_llm.kinds()

    def test_readme_failure_degrades(self, session, mock_adapter, fake_llm) -> None:
        source = make_source(tree=["a.py"])
        fake_llm.on("readme", lambda req: RuntimeError("down"))
        fake_llm.on("paths", _echo_partition)

        page_id = WikiGenerator(mock_adapter, source).generate_from_paths(REPO_URL)

        assert session.get(WikiPage, page_id).summary == ""

    def test_regeneration_replaces_subsystems(self, session, mock_adapter, fake_llm) -> None:
        generator = WikiGenerator(mock_adapter, make_source(tree=["a/x.py", "b/y.py"]))
        fake_llm.on("paths", _echo_partition)
        first_id = generator.generate_from_paths(REPO_URL)

        fake_llm.on("paths", lambda req: json.dumps([{"title": "All", "files": ["a/x.py", "b/y.py"]}]))
        second_id = generator.generate_from_paths(REPO_URL + ".git")

        assert second_id == first_id
        assert session.query(WikiPage).count() == 1
        assert [s.title for s in _subsystems(session, first_id)] == ["All"]

    def test_timeout_persists_nothing(self, session, mock_adapter, fake_llm) -> None:
        source = make_source(tree=["a.py"])

        with pytest.raises(PipelineTimeoutError):
            WikiGenerator(mock_adapter, source, timeout_seconds=0).generate_from_paths(REPO_URL)

        assert session.query(WikiPage).count() == 0


# ── Content-based strategy ──────────────────────────────────────────────────

class TestGenerateFromContent:
    def test_twelve_files_two_clusters(self, session, mock_adapter, fake_llm) -> None:
        paths = [f"src/{c}.ts" for c in string.ascii_lowercase[:12]]
        source = make_source(snapshot=make_files(paths))
        fake_llm.embedder = _near_two_centroids(paths)
        fake_llm.on(
            "cluster",
            lambda req: json.dumps({
                "title": "Front" if "src/a.ts" in req.user_prompt else "Back",
                "shortSummary": "Grouped files.",
            }),
        )

        page_id = WikiGenerator(mock_adapter, source).generate_from_content(REPO_URL)

        subsystems = _subsystems(session, page_id)
        assert sorted(s.title for s in subsystems) == ["Back", "Front"]
        by_title = {s.title: s.get_files() for s in subsystems}
        assert by_title["Front"] == paths[:6]
        assert by_title["Back"] == paths[6:]
        assert fake_llm.kinds().count("cluster") == 2
        source.fetch_snapshot.assert_called_once_with(REPO_URL, "main")

    def test_files_are_persisted_with_synopsis_and_embedding(self, session, mock_adapter, fake_llm) -> None:
        paths = ["a.py", "b.py", "c.py"]
        fake_llm.embedder = _near_two_centroids(paths)

        page_id = WikiGenerator(mock_adapter, make_source(snapshot=make_files(paths))).generate_from_content(REPO_URL)

        files = WikiManager(session).list_files(page_id)
        assert [f.path for f in files] == paths
        assert files[0].synopsis == "Synopsis of PATH: a.py"
        assert files[0].get_embedding() == [0.0, 0.0]

    def test_round_trip_covers_every_file(self, session, mock_adapter, fake_llm) -> None:
        paths = [f"pkg{i % 3}/mod{i}.py" for i in range(23)]
        fake_llm.embedder = lambda text: [float(int(_path_in(text).split("mod")[1][:-3]) % 4), 1.0]

        page_id = WikiGenerator(mock_adapter, make_source(snapshot=make_files(paths))).generate_from_content(REPO_URL)

        subsystems = _subsystems(session, page_id)
        assert len(subsystems) == 4
        covered = [p for s in subsystems for p in s.get_files()]
        assert sorted(covered) == sorted(paths)

    def test_synopsis_failure_is_contained(self, session, mock_adapter, fake_llm) -> None:
        paths = ["1.py", "2.py", "3.py", "4.py", "5.py"]
        fake_llm.on(
            "synopsis",
            lambda req: RuntimeError("too large") if "3.py" in req.user_prompt else f"about {_path_in(req.user_prompt)}",
        )
        fake_llm.embedder = lambda text: [float(text.split()[-1][0]), 0.0]

        page_id = WikiGenerator(mock_adapter, make_source(snapshot=make_files(paths))).generate_from_content(REPO_URL)

        assert len(fake_llm.embed_calls) == 4
        covered = sorted(p for s in _subsystems(session, page_id) for p in s.get_files())
        assert covered == ["1.py", "2.py", "4.py", "5.py"]
        assert len(WikiManager(session).list_files(page_id)) == 4

    def test_embedding_failure_is_fatal(self, session, mock_adapter, fake_llm) -> None:
        fake_llm.embedder = lambda text: RuntimeError("embedding service down")

        with pytest.raises(EmbeddingError):
            WikiGenerator(mock_adapter, make_source(snapshot=make_files(["a.py", "b.py"]))).generate_from_content(REPO_URL)

        assert session.query(WikiPage).count() == 0

    def test_all_synopses_failing_is_exhausted_input(self, session, mock_adapter, fake_llm) -> None:
        fake_llm.on("synopsis", lambda req: RuntimeError("nope"))

        with pytest.raises(NoValidFilesError):
            WikiGenerator(mock_adapter, make_source(snapshot=make_files(["a.py"]))).generate_from_content(REPO_URL)

    def test_single_file_skips_clustering(self, session, mock_adapter, fake_llm) -> None:
        page_id = WikiGenerator(mock_adapter, make_source(snapshot=make_files(["main.py"]))).generate_from_content(REPO_URL)

        subsystems = _subsystems(session, page_id)
        assert len(subsystems) == 1
        assert subsystems[0].get_files() == ["main.py"]

    def test_large_repo_selects_important_files(self, session, mock_adapter, fake_llm) -> None:
        paths = [f"src/f{i:02d}.py" for i in range(60)]
        fake_llm.on("important", lambda req: json.dumps(["src/f03.py", "src/F10.py", "src/ghost.py", "src/f42.py"]))
        fake_llm.embedder = lambda text: [float(int(_path_in(text)[5:7])), 0.0]

        page_id = WikiGenerator(mock_adapter, make_source(snapshot=make_files(paths))).generate_from_content(REPO_URL)

        covered = sorted(p for s in _subsystems(session, page_id) for p in s.get_files())
        assert covered == ["src/f03.py", "src/f10.py", "src/f42.py"]
        assert fake_llm.kinds().count("synopsis") == 3

    def test_small_repo_skips_selection(self, mock_adapter, fake_llm) -> None:
        paths = [f"f{i}.py" for i in range(50)]
        fake_llm.embedder = lambda text: [float(_path_in(text)[1:-3]), 0.0]

        WikiGenerator(mock_adapter, make_source(snapshot=make_files(paths))).generate_from_content(REPO_URL)

        assert "important" not in fake_llm.kinds()

    def test_failed_cluster_label_falls_back(self, session, mock_adapter, fake_llm) -> None:
        paths = ["src/auth/a.py", "src/auth/b.py", "lib/x.py", "lib/y.py"]
        fake_llm.embedder = _near_two_centroids(paths)
        fake_llm.on(
            "cluster",
            lambda req: "oops" if "src/auth/a.py" in req.user_prompt else '{"title": "Library", "shortSummary": "x"}',
        )

        page_id = WikiGenerator(mock_adapter, make_source(snapshot=make_files(paths))).generate_from_content(REPO_URL)

        titles = sorted(s.title for s in _subsystems(session, page_id))
        assert titles == ["Library", "src/auth"]

    def test_failed_cluster_label_dropped_without_fallback(self, session, mock_adapter, fake_llm) -> None:
        paths = ["src/auth/a.py", "src/auth/b.py", "lib/x.py", "lib/y.py"]
        fake_llm.embedder = _near_two_centroids(paths)
        fake_llm.on(
            "cluster",
            lambda req: RuntimeError("x") if "src/auth/a.py" in req.user_prompt else '{"title": "Library"}',
        )
        generator = WikiGenerator(mock_adapter, make_source(snapshot=make_files(paths)), label_fallback=False)

        page_id = generator.generate_from_content(REPO_URL)

        subsystems = _subsystems(session, page_id)
        assert [s.title for s in subsystems] == ["Library"]
        assert subsystems[0].get_files() == ["lib/x.py", "lib/y.py"]

    def test_batch_timeout_becomes_pipeline_timeout(self, session, mock_adapter, fake_llm, monkeypatch) -> None:
        def slow_batch(requests, *, max_concurrency, timeout=None):
            raise TimeoutError("batch exceeded")

        monkeypatch.setattr("repo_wiki.services.file.synopsis.run_batch", slow_batch)

        with pytest.raises(PipelineTimeoutError):
            WikiGenerator(mock_adapter, make_source(snapshot=make_files(["a.py"]))).generate_from_content(REPO_URL)

        assert session.query(WikiPage).count() == 0

    def test_regeneration_replaces_files(self, session, mock_adapter, fake_llm) -> None:
        generator = WikiGenerator(mock_adapter, make_source(snapshot=make_files(["a.py", "b.py"])))
        fake_llm.embedder = _near_two_centroids(["a.py", "b.py"])
        page_id = generator.generate_from_content(REPO_URL)

        fake_llm.embedder = lambda text: [1.0, 0.0]
        generator = WikiGenerator(mock_adapter, make_source(snapshot=make_files(["c.py"])))
        assert generator.generate_from_content(REPO_URL) == page_id

        assert [f.path for f in WikiManager(session).list_files(page_id)] == ["c.py"]
        assert session.query(WikiFile).count() == 1


# ── Subsystem deep-dive ─────────────────────────────────────────────────────

class TestGenerateSubsystemDetail:
    def test_generates_and_stores_summary(self, session, mock_adapter, fake_llm) -> None:
        page = make_wiki_page(session)
        sub = make_subsystem(session, page, title="Auth", files=["auth.py", "empty.py", "gone.py"])
        session.commit()
        source = make_source(contents={"auth.py": "def login(): ...", "empty.py": "  "})

        result = WikiGenerator(mock_adapter, source).generate_subsystem_detail(sub.subsystem_id)

        assert result == {"summary": "# Deep dive\nDetails.", "files_processed": 1, "total_files": 3}
        session.expire_all()
        assert session.get(Subsystem, sub.subsystem_id).summary == "# Deep dive\nDetails."
        _, req = fake_llm.calls[-1]
        assert "SUBSYSTEM: Auth" in req.user_prompt
        assert "def login()" in req.user_prompt

    def test_unknown_subsystem(self, mock_adapter, fake_llm) -> None:
        with pytest.raises(NotFoundError):
            WikiGenerator(mock_adapter, make_source()).generate_subsystem_detail(999)

    def test_no_valid_files(self, session, mock_adapter, fake_llm) -> None:
        page = make_wiki_page(session)
        sub = make_subsystem(session, page, files=["gone.py"])
        session.commit()

        with pytest.raises(NoValidFilesError, match="No valid files found"):
            WikiGenerator(mock_adapter, make_source()).generate_subsystem_detail(sub.subsystem_id)

        session.expire_all()
        assert session.get(Subsystem, sub.subsystem_id).summary is None


def test_canonical_repo_url() -> None:
    assert canonical_repo_url(RepoRef("o", "r")) == "https://github.com/o/r"
