"""DiscShelf command-line interface."""
