"""Prompt strings for LLM tasks."""

from .file_synopsis_system import FILE_SYNOPSIS_SYSTEM_PROMPT
from .important_files_system import IMPORTANT_FILES_SYSTEM_PROMPT
from .readme_summary_system import README_SUMMARY_SYSTEM_PROMPT, SHORT_SUMMARY_SYSTEM_PROMPT
from .subsystem_detail_system import SUBSYSTEM_DETAIL_SYSTEM_PROMPT
from .subsystem_label_system import CLUSTER_LABEL_SYSTEM_PROMPT, PATH_SUBSYSTEMS_SYSTEM_PROMPT

__all__ = [
    "FILE_SYNOPSIS_SYSTEM_PROMPT",
    "IMPORTANT_FILES_SYSTEM_PROMPT",
    "README_SUMMARY_SYSTEM_PROMPT",
    "SHORT_SUMMARY_SYSTEM_PROMPT",
    "SUBSYSTEM_DETAIL_SYSTEM_PROMPT",
    "CLUSTER_LABEL_SYSTEM_PROMPT",
    "PATH_SUBSYSTEMS_SYSTEM_PROMPT",
]
