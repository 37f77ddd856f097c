"""HTTP API for the generation endpoints."""
