"""Shared infrastructure: errors, logging helpers and the async HTTP client."""
