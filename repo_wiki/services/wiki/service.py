"""Read-only access to generated wiki pages."""

from repo_wiki.db import DBAdapter
from repo_wiki.db_managers import SubsystemManager, WikiManager
from repo_wiki.errors import NotFoundError
from repo_wiki.models import Subsystem, WikiPage


class WikiService:
    """Wiki read operations for the HTTP layer."""

    def __init__(self, adapter: DBAdapter):
        self._adapter = adapter

    def list_pages(self) -> list[dict[str, object]]:
        with self._adapter.session() as session:
            return [_page_to_dict(p) for p in WikiManager(session).list_pages()]

    def get_page(self, page_id: int) -> dict[str, object]:
        with self._adapter.session() as session:
            page = WikiManager(session).get_page(page_id)
            if page is None:
                raise NotFoundError(f"Wiki page not found: {page_id}")
            subsystems = SubsystemManager(session).list_by_page(page_id)
            return {
                **_page_to_dict(page),
                "summary": page.summary,
                "subsystems": [_subsystem_to_dict(s) for s in subsystems],
            }


def _page_to_dict(page: WikiPage) -> dict[str, object]:
    return {
        "page_id": page.page_id,
        "repo_url": page.repo_url,
        "branch": page.branch,
        "title": page.title,
        "short_summary": page.short_summary,
        "created_at": page.created_at,
        "updated_at": page.updated_at,
    }


def _subsystem_to_dict(subsystem: Subsystem) -> dict[str, object]:
    return {
        "subsystem_id": subsystem.subsystem_id,
        "title": subsystem.title,
        "short_summary": subsystem.short_summary,
        "summary": subsystem.summary,
        "files": subsystem.get_files(),
    }
