"""hhwatch - Watchman client for tracking source files in a project root."""

__version__ = "0.1.0"
