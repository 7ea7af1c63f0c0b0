"""HTTP surface: file routes under the configured mount path, plus health checks."""

from sharebox.api.router import build_api_router

__all__ = ["build_api_router"]
