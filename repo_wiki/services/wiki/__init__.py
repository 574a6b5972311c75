"""Wiki generation and read access."""
