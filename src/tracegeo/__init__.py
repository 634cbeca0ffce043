"""
tracegeo - IP geolocation for network diagnostics

This package resolves hop addresses to normalized location and ownership
metadata from a local geofeed, local databases, or remote geo APIs.
"""

__version__ = "1.0.0"


# Lazy imports to avoid loading httpx and the database readers when not needed
def __getattr__(name):
    """Lazy loading of package components to avoid unnecessary imports."""
    if name == "GeoResult":
        from .models import GeoResult

        return GeoResult
    elif name == "Resolver":
        from .resolver import Resolver

        return Resolver
    elif name == "GeofeedStore":
        from .geofeed import GeofeedStore

        return GeofeedStore
    elif name == "normalize_region":
        from .normalize import normalize_region

        return normalize_region
    elif name == "get_provider":
        from .providers import get_provider

        return get_provider
    elif name == "AppSettings":
        from .config import AppSettings

        return AppSettings
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


# Define the public API of the package
__all__ = [
    "GeoResult",
    "Resolver",
    "GeofeedStore",
    "normalize_region",
    "get_provider",
    "AppSettings",
    "__version__",
]
