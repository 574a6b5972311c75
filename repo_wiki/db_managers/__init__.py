"""Managers: take a DB session and provide access to models."""

from .subsystem_manager import SubsystemManager
from .wiki_manager import WikiFileSpec, WikiManager

__all__ = ["SubsystemManager", "WikiFileSpec", "WikiManager"]
