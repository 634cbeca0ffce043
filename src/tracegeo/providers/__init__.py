"""Provider registry.

The set of providers is closed: configuration selects one or more of them by
name.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import List, Mapping, Optional, Type

from ..config import AppSettings
from ..errors import ConfigurationError
from ..models import ProviderDescriptor
from .base import GeoProvider, RemoteProvider
from .geolite2 import GeoLite2Provider
from .ipapi import IPApiProvider
from .ipinfo import IPInfoProvider
from .ipinfo_local import IPInfoLocalProvider
from .ipsb import IPSBProvider
from .local import LocalDatabaseProvider, locate_database

PROVIDERS: Mapping[str, Type[GeoProvider]] = MappingProxyType(
    {
        cls.descriptor.name: cls
        for cls in (
            IPApiProvider,
            IPSBProvider,
            IPInfoProvider,
            IPInfoLocalProvider,
            GeoLite2Provider,
        )
    }
)


def available_providers() -> List[ProviderDescriptor]:
    return [cls.descriptor for cls in PROVIDERS.values()]


def get_provider(name: str, settings: Optional[AppSettings] = None) -> GeoProvider:
    """Build the provider registered under ``name``."""
    key = (name or "").strip().lower()
    try:
        cls = PROVIDERS[key]
    except KeyError:
        known = ", ".join(PROVIDERS)
        raise ConfigurationError(f"unknown provider {name!r} (known: {known})") from None
    return cls.from_settings(settings or AppSettings())


__all__ = [
    "GeoProvider",
    "RemoteProvider",
    "LocalDatabaseProvider",
    "IPApiProvider",
    "IPSBProvider",
    "IPInfoProvider",
    "IPInfoLocalProvider",
    "GeoLite2Provider",
    "PROVIDERS",
    "available_providers",
    "get_provider",
    "locate_database",
]
