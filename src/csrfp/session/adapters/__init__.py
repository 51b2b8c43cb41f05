"""Session store adapters."""
