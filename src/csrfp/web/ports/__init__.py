"""Web ports."""
