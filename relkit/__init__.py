"""Release automation for Node application packages."""

__version__ = "0.1.0"
