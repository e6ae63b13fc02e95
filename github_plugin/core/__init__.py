"""
Core Module - Configuration and dependency injection.

Factories live in github_plugin.core.dependencies; import them from
there (the services import this package for get_settings).
"""

from github_plugin.core.config import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
