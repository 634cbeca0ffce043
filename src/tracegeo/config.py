import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .constants import GEO_TIMEOUT


def _env_list(name: str, default: str) -> List[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


@dataclass
class AppSettings:
    """Centralized configuration for geolocation lookups"""

    # Local geofeed override table; empty means "not configured"
    GEOFEED_PATH: str = os.getenv("TRACEGEO_GEOFEED_PATH", "")

    # Provider selection
    PROVIDERS: List[str] = field(default_factory=lambda: _env_list("TRACEGEO_PROVIDERS", "ipapi"))
    STRATEGY: str = os.getenv("TRACEGEO_STRATEGY", "sequential")
    TIMEOUT: float = float(os.getenv("TRACEGEO_TIMEOUT", str(GEO_TIMEOUT)))
    # Connection-level retries for remote providers
    RETRIES: int = int(os.getenv("TRACEGEO_RETRIES", "0"))
    TOKEN: str = os.getenv("TRACEGEO_TOKEN", "")
    EXTENDED: bool = os.getenv("TRACEGEO_EXTENDED", "False").lower() == "true"

    # Base URL overrides for mirrors and self-hosted proxies
    BASE_URLS: Dict[str, str] = field(
        default_factory=lambda: {
            name: value
            for name, value in {
                "ipapi": os.getenv("TRACEGEO_IPAPI_BASE", ""),
                "ipsb": os.getenv("TRACEGEO_IPSB_BASE", ""),
                "ipinfo": os.getenv("TRACEGEO_IPINFO_BASE", ""),
            }.items()
            if value
        }
    )

    # Explicit database locations; when set they must exist
    DATABASE_PATHS: Dict[str, str] = field(
        default_factory=lambda: {
            name: value
            for name, value in {
                "ipinfolocal": os.getenv("TRACEGEO_IPINFOLOCAL_PATH", ""),
                "geolite2": os.getenv("TRACEGEO_GEOLITE2_PATH", ""),
            }.items()
            if value
        }
    )

    # Logging
    MASK_SENSITIVE_DATA: bool = True
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "WARNING")
    LOG_FILE: Optional[str] = os.getenv("TRACEGEO_LOG_FILE") or None

    def base_url(self, provider: str) -> str:
        return self.BASE_URLS.get(provider, "")

    def database_path(self, provider: str) -> str:
        return self.DATABASE_PATHS.get(provider, "")
