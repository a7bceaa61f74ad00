"""Template document loading and building."""
