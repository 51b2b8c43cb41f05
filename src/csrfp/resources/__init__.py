"""Packaged resources for csrfp."""
