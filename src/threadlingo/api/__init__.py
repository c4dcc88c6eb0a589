"""HTTP surface: FastAPI application, route modules and service wiring."""
