"""Configuration file parsing and incremental HTTP request parsing for a small web server."""

__version__ = "0.1.0"