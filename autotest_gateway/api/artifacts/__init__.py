"""Persisted artifact endpoint."""
