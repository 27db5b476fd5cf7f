"""Container image list and build endpoints."""
