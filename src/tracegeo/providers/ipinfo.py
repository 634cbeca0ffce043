"""ipinfo.io adapter (token required)."""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from ..errors import ConfigurationError, EmptyResponseError, LookupMissError
from ..models import GeoResult, ProviderDescriptor
from ..normalize import normalize_region
from .base import RemoteProvider, asn_digits, text, to_float

logger = logging.getLogger(__name__)


def _split_org(org: str) -> Tuple[str, str]:
    """Split an ipinfo ``org`` value into ASN digits and owner name."""
    if org.upper().startswith("AS"):
        number, _, owner = org.partition(" ")
        return asn_digits(number), owner.strip()
    return "", org


def _split_loc(loc: str) -> Tuple[float, float]:
    lat, _, lon = loc.partition(",")
    return to_float(lat.strip()), to_float(lon.strip())


class IPInfoProvider(RemoteProvider):
    descriptor = ProviderDescriptor(
        name="ipinfo",
        requires_network=True,
        requires_token=True,
        supports_base_url=True,
        description="ipinfo.io (access token required)",
    )

    async def resolve(
        self,
        ip: str,
        timeout: Optional[float] = None,
        token: str = "",
        extended: bool = False,
    ) -> GeoResult:
        if not token:
            raise ConfigurationError("an access token is required", context=self.name)

        payload = await self.get_json(self.url_for(ip), timeout, params={"token": token})

        if payload.get("bogon"):
            raise LookupMissError(f"{ip} is a bogon address", context=self.name)
        if not text(payload, "country"):
            raise EmptyResponseError("response carried no geolocation fields", context=self.name)

        asnumber, owner = _split_org(text(payload, "org"))
        latitude, longitude = _split_loc(text(payload, "loc")) if extended else (0.0, 0.0)

        country, province, city, district = normalize_region(
            text(payload, "country"),
            text(payload, "region"),
            text(payload, "city"),
        )
        return GeoResult(
            asnumber=asnumber,
            country=country,
            province=province,
            city=city,
            district=district,
            owner=owner,
            latitude=latitude,
            longitude=longitude,
            source=self.name,
        )
