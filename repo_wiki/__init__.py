"""Generate subsystem wikis for GitHub repositories."""
