"""Request middleware and FastAPI dependencies."""
