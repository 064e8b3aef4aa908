"""Roles - named permission sets."""
