"""A small blog backend: a JSON HTTP API for blog posts stored in SQLite."""

__version__ = "0.1.0"