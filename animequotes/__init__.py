"""Anime quotes API with API key authentication and tiered rate limiting."""

__version__ = "0.1.0"
