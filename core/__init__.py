"""
Shared service plumbing: settings, logging setup and the service container.
"""

from .config import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
