"""Accounts - tenant bootstrap and invite finalization."""
