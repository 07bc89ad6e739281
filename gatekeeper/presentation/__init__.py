"""HTTP boundary: FastAPI dependencies and middleware."""
