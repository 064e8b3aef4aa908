"""Organizations - top-level tenants."""
