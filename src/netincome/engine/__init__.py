"""Effective-dated lookups, bracket arithmetic and other rule primitives."""
