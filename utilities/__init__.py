"""
Shared utilities for the Book Catalog API.
"""
