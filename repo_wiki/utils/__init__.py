"""Shared helpers: path filtering, LLM output parsing, OpenAI fan-out."""

from .file_filter import filter_files, is_excluded_path
from .llm_json import ensure_string_list, loads_json

__all__ = [
    "filter_files",
    "is_excluded_path",
    "ensure_string_list",
    "loads_json",
]
