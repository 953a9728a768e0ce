"""Shared utilities for DiscShelf: errors, messages, logging, constants."""
