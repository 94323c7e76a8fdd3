"""Routers package for the medcabinet scheduling API."""

from .schedules import router as schedules_router

__all__ = ["schedules_router"]
