"""Read-only keyword and semantic retrieval over a local Bear notes database."""

__version__ = "0.1.0"
