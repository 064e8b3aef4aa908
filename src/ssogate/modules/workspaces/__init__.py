"""Workspaces and the memberships that bind users to them."""
