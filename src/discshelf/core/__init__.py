"""Core resolution logic: title normalization and candidate matching."""
