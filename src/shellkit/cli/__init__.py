"""Command-line interface for shellkit."""
