"""Reporters for acquired file changes."""
