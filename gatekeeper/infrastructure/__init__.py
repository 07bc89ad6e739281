"""Infrastructure adapters (persistence, security, rate limit stores, logging)."""
