"""Local git diff viewer with inline review comments."""

__version__ = "0.1.0"
