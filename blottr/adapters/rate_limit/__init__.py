"""Rate limiting adapters.

This package keeps the counter store behind a small abstraction so the
middleware can start with an in-memory store and later move to a shared
backend without changing the HTTP layer.
"""
