"""Service layer exports."""

from .wiki.generator import WikiGenerator
from .wiki.service import WikiService

__all__ = ["WikiGenerator", "WikiService"]
