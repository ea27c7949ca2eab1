"""HTTP API for the forum content service."""
