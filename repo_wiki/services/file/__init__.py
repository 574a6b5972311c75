"""Per-file pipeline stages: selection, synopsis, embedding."""
