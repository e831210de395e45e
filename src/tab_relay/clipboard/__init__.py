"""Clipboard access."""
