"""FastAPI routers acting as controllers in the MVC architecture."""

from . import webhook

__all__ = ["webhook"]
