"""Content-site theme toolkit: grouped pagination and client-side search."""

__version__ = "0.1.0"
