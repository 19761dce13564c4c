"""Core - shared runtime setup (logging)."""
