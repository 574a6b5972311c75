"""WikiFile model: per-file synopsis and embedding from content-based generation."""

import json

from sqlalchemy import Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


def embedding_to_json(embedding: list[float] | None) -> str | None:
    if embedding is None:
        return None
    return json.dumps([float(x) for x in embedding])


def embedding_from_json(s: str | None) -> list[float] | None:
    if not s or not s.strip():
        return None
    try:
        data = json.loads(s)
    except (json.JSONDecodeError, TypeError):
        return None
    if not isinstance(data, list):
        return None
    try:
        return [float(x) for x in data]
    except (TypeError, ValueError):
        return None


class WikiFile(Base):
    """A file that took part in content-based clustering for a wiki page."""

    __tablename__ = "wiki_files"

    file_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    page_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    path: Mapped[str] = mapped_column(Text, nullable=False)  # path relative to repo root
    synopsis: Mapped[str] = mapped_column(Text, nullable=False, default="")
    embedding_json: Mapped[str | None] = mapped_column(Text, nullable=True)  # JSON float array

    def __repr__(self) -> str:
        return f"<WikiFile {self.file_id} page={self.page_id} {self.path!r}>"

    def get_embedding(self) -> list[float] | None:
        return embedding_from_json(self.embedding_json)

    def set_embedding(self, embedding: list[float] | None) -> None:
        self.embedding_json = embedding_to_json(embedding)
