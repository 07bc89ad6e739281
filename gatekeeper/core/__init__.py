"""Core utilities: result type, errors, configuration and container."""
