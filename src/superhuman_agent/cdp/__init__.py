"""Debugging-protocol connection layer."""
