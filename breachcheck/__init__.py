"""HTTP service that checks e-mail addresses against a SQLite breach database."""

__version__ = "1.0.0"
__all__ = ["cache", "database", "server", "validation"]