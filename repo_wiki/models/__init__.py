"""SQLAlchemy models and transient pipeline records."""

from .base import Base
from .wiki_page import WikiPage
from .subsystem import Subsystem
from .wiki_file import WikiFile
from .records import Cluster, FileRecord, SubsystemLabel, SubsystemSpec

__all__ = [
    "Base",
    "WikiPage",
    "Subsystem",
    "WikiFile",
    "Cluster",
    "FileRecord",
    "SubsystemLabel",
    "SubsystemSpec",
]
