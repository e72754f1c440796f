"""Router module."""

from .router import IRouter, Router

__all__ = ["IRouter", "Router"]
