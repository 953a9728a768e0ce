"""External service clients, the lookup cache and request coalescing."""
