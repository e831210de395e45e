"""Debugging-protocol transport and session supervision."""
