"""Built-in row sinks."""
