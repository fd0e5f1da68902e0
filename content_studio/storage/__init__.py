"""Artifact storage, integrity metadata, and topic lookups."""
