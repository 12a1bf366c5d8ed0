"""Built-in row sources."""
