"""Shipped instrument tables and the loader that validates them."""
