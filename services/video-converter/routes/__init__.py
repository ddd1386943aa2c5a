"""API route exports."""

from .converter import router as converter_router

__all__ = ["converter_router"]
