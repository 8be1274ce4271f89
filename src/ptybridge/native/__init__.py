"""Bundled native pty providers, loaded on demand by the provider loader."""
