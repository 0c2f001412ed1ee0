"""Dependency graph resolution, progress streams and the deploy pipeline."""
