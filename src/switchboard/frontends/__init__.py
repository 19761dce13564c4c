"""Frontends - User interfaces for Switchboard."""
