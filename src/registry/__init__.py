"""Upstream registry clients: npm, Bower, GitHub and Maven."""
