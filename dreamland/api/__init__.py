"""HTTP layer: FastAPI app, middleware and routes."""
