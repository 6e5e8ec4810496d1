"""Single-button voice memo recorder."""

__version__ = "0.1.0"
