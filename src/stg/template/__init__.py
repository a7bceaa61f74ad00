"""Resolved templates: types, restrictions and validation."""
