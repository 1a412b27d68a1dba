"""
API routers
"""
from . import health, presets, submit

__all__ = [
    "health",
    "presets",
    "submit",
]
