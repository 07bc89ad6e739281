"""Authentication and access-control subsystem."""

__version__ = "0.1.0"
