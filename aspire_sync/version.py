"""Version information for aspire-sync."""

__version__ = "0.1.0"
