"""Entitlements - subscription to product and feature mapping."""
