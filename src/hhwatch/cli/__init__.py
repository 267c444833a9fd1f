"""Command line interface for hhwatch."""
