"""ReleaseWatch - new-release detection for tracked artists and games."""

__version__ = "0.1.0"
