"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import (
    DEFAULT_REFERERS,
    DEFAULT_USER_AGENTS,
    FetchSettings,
    GlobalConfig,
    SourceConfig,
    SourceKind,
    default_sources,
)

__all__ = [
    "ConfigLocator",
    "ConfigRepository",
    "DEFAULT_REFERERS",
    "DEFAULT_USER_AGENTS",
    "FetchSettings",
    "GlobalConfig",
    "SourceConfig",
    "SourceKind",
    "default_sources",
]
