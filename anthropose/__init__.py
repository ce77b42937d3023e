"""AnthroPose: photo-based anthropometric measurement engine."""

__version__ = "0.1.0"
