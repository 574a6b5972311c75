"""System prompt for per-file synopses (the text that gets embedded)."""

FILE_SYNOPSIS_SYSTEM_PROMPT: str = (
    "You are analyzing a single file from a code repository.\n\n"
    "Write a synopsis of at most {max_words} words covering:\n"
    "- What the file is responsible for, in terms of the feature it serves.\n"
    "- Its key functions, classes, routes or data structures.\n"
    "- The other parts of the system it interacts with.\n\n"
    "Rules:\n"
    "- Plain text, one paragraph, English.\n"
    "- If the file is documentation or configuration, summarize what it describes or configures.\n"
)
