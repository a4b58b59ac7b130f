"""API route modules."""
from __future__ import annotations

from genjazz.api.routes import generate, health

__all__ = ["generate", "health"]
