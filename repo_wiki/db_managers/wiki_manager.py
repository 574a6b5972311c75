"""Manager for WikiPage and WikiFile models: CRUD using a DB session."""

import time
from dataclasses import dataclass

from sqlalchemy.orm import Session

from ..models import Subsystem, WikiFile, WikiPage, SubsystemSpec


@dataclass(frozen=True)
class WikiFileSpec:
    """Plain data for one persisted file row."""

    path: str
    synopsis: str
    embedding: tuple[float, ...] | None


class WikiManager:
    """Provides access to wiki models. Takes a DB session as input."""

    def __init__(self, session: Session):
        self._session = session

    def get_page(self, page_id: int) -> WikiPage | None:
        return self._session.query(WikiPage).filter(WikiPage.page_id == page_id).first()

    def get_by_repo_url(self, repo_url: str) -> WikiPage | None:
        return self._session.query(WikiPage).filter(WikiPage.repo_url == repo_url).first()

    def list_pages(self) -> list[WikiPage]:
        return (
            self._session.query(WikiPage)
            .order_by(WikiPage.updated_at.desc(), WikiPage.page_id.desc())
            .all()
        )

    def create_page(
        self,
        *,
        repo_url: str,
        branch: str,
        title: str,
        summary: str,
        short_summary: str,
        subsystems: list[SubsystemSpec],
        files: list[WikiFileSpec] | None = None,
    ) -> WikiPage:
        """Insert a wiki page together with its subsystems and files."""
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
        self._session.add(page)
        self._session.flush()
        self._add_children(page.page_id, subsystems, files or [])
        return page

    def replace_page(
        self,
        page: WikiPage,
        *,
        branch: str,
        title: str,
        summary: str,
        short_summary: str,
        subsystems: list[SubsystemSpec],
        files: list[WikiFileSpec] | None = None,
    ) -> WikiPage:
        """Overwrite page fields and recreate all subsystems and files.

        Prior subsystems and files are deleted in full, never merged.
        """
        page.branch = branch
        page.title = title
        page.summary = summary
        page.short_summary = short_summary
        page.updated_at = int(time.time())
        self._session.query(Subsystem).filter(Subsystem.page_id == page.page_id).delete()
        self._session.query(WikiFile).filter(WikiFile.page_id == page.page_id).delete()
        self._session.flush()
        self._add_children(page.page_id, subsystems, files or [])
        return page

    def list_files(self, page_id: int) -> list[WikiFile]:
        return (
            self._session.query(WikiFile)
            .filter(WikiFile.page_id == page_id)
            .order_by(WikiFile.file_id)
            .all()
        )

    def _add_children(
        self,
        page_id: int,
        subsystems: list[SubsystemSpec],
        files: list[WikiFileSpec],
    ) -> None:
        for spec in subsystems:
            subsystem = Subsystem(
                page_id=page_id,
                title=spec["title"],
                short_summary=spec["short_summary"],
                summary=None,
            )
            subsystem.set_files(spec["files"])
            self._session.add(subsystem)
        for f in files:
            wiki_file = WikiFile(
                page_id=page_id,
                path=f.path,
                synopsis=f.synopsis,
            )
            wiki_file.set_embedding(list(f.embedding) if f.embedding is not None else None)
            self._session.add(wiki_file)
        self._session.flush()
