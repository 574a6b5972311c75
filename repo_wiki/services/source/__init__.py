"""Remote repository content sources."""

from .github import GitHubSource, RepoRef, parse_github_url

__all__ = ["GitHubSource", "RepoRef", "parse_github_url"]
