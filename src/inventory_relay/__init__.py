"""inventory-relay: dealer inventory scraping, normalization and marketplace posting."""

__version__ = "0.1.0"
