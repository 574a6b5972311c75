"""System prompts for the wiki page's narrative summary."""

README_SUMMARY_SYSTEM_PROMPT: str = (
    "You are generating the overview section of a developer wiki from a repository README.\n\n"
    "Goal:\n"
    "- Describe what the repository is, its main purpose and its main features.\n"
    "- Write for an engineer who has never seen the project.\n\n"
    "Rules:\n"
    "- Write in English.\n"
    "- Use markdown.\n"
    "- Do not invent features the README does not mention.\n"
)

SHORT_SUMMARY_SYSTEM_PROMPT: str = (
    "You are compressing a repository overview into a one-paragraph blurb for a list of wikis.\n\n"
    "Rules:\n"
    "- Plain text only, no markdown.\n"
    "- At most {max_words} words.\n"
    "- Write in English.\n"
)
