"""local-brain: plain-text capture inbox, project task files and inline metadata."""

__version__ = "0.4.0"
