"""AutoTest gateway: GitHub webhook ingestion and container build dispatch."""

__version__ = "0.1.0"
