"""API routers."""
from .relay import router as relay_router

__all__ = ["relay_router"]
