"""Transient, in-memory records that live for a single generation run."""

from dataclasses import dataclass, field
from typing import TypedDict


@dataclass(frozen=True)
class FileRecord:
    """One repository file flowing through the pipeline.

    ``synopsis`` and ``embedding`` are filled by later stages with
    ``dataclasses.replace``; the record itself is never mutated.
    """

    path: str
    content: str = ""
    synopsis: str | None = None
    embedding: tuple[float, ...] | None = None


@dataclass
class Cluster:
    """Members assigned to one k-means centroid."""

    centroid: list[float]
    members: list[FileRecord] = field(default_factory=list)


class SubsystemSpec(TypedDict):
    title: str
    short_summary: str
    files: list[str]


class SubsystemLabel(TypedDict):
    title: str
    short_summary: str
