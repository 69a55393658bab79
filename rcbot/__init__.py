"""Release-candidate automation for GitHub repositories."""

__version__ = "0.3.0"
