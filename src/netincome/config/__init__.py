"""Bundled reference datasets, their schema and validation tooling."""
