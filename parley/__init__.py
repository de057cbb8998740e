"""Discussion versioning and similarity."""

__version__ = "0.1.0"
