"""Git with intent preservation: commit manifests and enriched conflicts."""

__version__ = "0.3.0"
