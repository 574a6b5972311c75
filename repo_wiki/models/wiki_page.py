"""WikiPage model: one generated wiki per repository URL."""

import time

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class WikiPage(Base):
    """Narrative summary of a repository; owns its subsystems and files."""

    __tablename__ = "wiki_pages"

    page_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    repo_url: Mapped[str] = mapped_column(Text, nullable=False, unique=True, index=True)
    branch: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)  # "owner/repo"
    summary: Mapped[str] = mapped_column(Text, nullable=False, default="")
    short_summary: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[int] = mapped_column(Integer, nullable=False, default=lambda: int(time.time()))
    updated_at: Mapped[int] = mapped_column(Integer, nullable=False, default=lambda: int(time.time()))

    def __repr__(self) -> str:
        return f"<WikiPage {self.page_id} {self.title!r}>"
