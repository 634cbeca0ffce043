from __future__ import annotations

import ipaddress
from dataclasses import asdict, dataclass
from typing import Any, Dict, Union

IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]


@dataclass(frozen=True, slots=True)
class GeoFeedEntry:
    """One row of a geofeed file.

    Immutable so that a loaded index can be shared by concurrent lookups.
    """

    network: IPNetwork
    country_code: str
    iso3166_region: str
    city: str
    asn: str = ""
    network_owner: str = ""

    @property
    def cidr(self) -> str:
        return str(self.network)

    @property
    def prefixlen(self) -> int:
        return self.network.prefixlen


@dataclass(slots=True)
class GeoResult:
    """Normalized answer returned by every provider."""

    asnumber: str = ""
    country: str = ""
    province: str = ""
    city: str = ""
    district: str = ""
    owner: str = ""
    latitude: float = 0.0
    longitude: float = 0.0
    source: str = ""

    @property
    def has_coordinates(self) -> bool:
        return bool(self.latitude or self.longitude)

    def location(self) -> str:
        """Human readable location, most general part first."""

        parts = [self.country, self.province, self.city, self.district]
        seen: list[str] = []
        for part in parts:
            if part and part not in seen:
                seen.append(part)
        return " ".join(seen)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class ProviderDescriptor:
    """Static description of a provider backend."""

    name: str
    requires_network: bool
    requires_token: bool = False
    supports_base_url: bool = False
    description: str = ""
