"""Musical descriptor extraction from short audio excerpts."""

__version__ = "1.0.0"
