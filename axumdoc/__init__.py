"""Static OpenAPI generation for Axum routers."""

__version__ = "0.1.0"

__all__ = ["__version__"]
