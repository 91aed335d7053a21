"""cardflow — incremental card JSON parsing, diffing and masonry layout."""

__version__ = "0.1.0"
