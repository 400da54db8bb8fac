"""Rule engine for a tile-matching puzzle board."""

__version__ = "0.1.0"
