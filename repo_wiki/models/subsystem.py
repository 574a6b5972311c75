"""Subsystem model: a named group of file paths under a wiki page."""

import json
import time

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


def files_to_json(files: list[str] | None) -> str:
    return json.dumps([str(f) for f in (files or [])])


def files_from_json(s: str | None) -> list[str]:
    if not s or not s.strip():
        return []
    try:
        data = json.loads(s)
    except (json.JSONDecodeError, TypeError):
        return []
    if isinstance(data, list):
        return [str(f) for f in data]
    return []


class Subsystem(Base):
    """Subsystem row tied to a wiki page.

    ``summary`` stays NULL until a deep-dive is requested for the subsystem.
    """

    __tablename__ = "subsystems"

    subsystem_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    page_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    short_summary: Mapped[str] = mapped_column(Text, nullable=False, default="")
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    files_json: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    created_at: Mapped[int] = mapped_column(Integer, nullable=False, default=lambda: int(time.time()))

    def __repr__(self) -> str:
        return f"<Subsystem {self.subsystem_id} page={self.page_id} {self.title!r}>"

    def get_files(self) -> list[str]:
        return files_from_json(self.files_json)

    def set_files(self, files: list[str]) -> None:
        self.files_json = files_to_json(files)
