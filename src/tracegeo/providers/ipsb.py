"""api.ip.sb adapter."""

from __future__ import annotations

from typing import Optional

from ..errors import EmptyResponseError
from ..models import GeoResult, ProviderDescriptor
from ..normalize import normalize_region
from .base import RemoteProvider, asn_digits, text, to_float


class IPSBProvider(RemoteProvider):
    descriptor = ProviderDescriptor(
        name="ipsb",
        requires_network=True,
        supports_base_url=True,
        description="api.ip.sb GeoIP endpoint",
    )

    async def resolve(
        self,
        ip: str,
        timeout: Optional[float] = None,
        token: str = "",
        extended: bool = False,
    ) -> GeoResult:
        payload = await self.get_json(self.url_for(ip), timeout)

        if not text(payload, "country"):
            # Nothing usable: Cloudflare bot protection answered instead of the API
            raise EmptyResponseError(
                "empty response, possibly blocked by Cloudflare", context=self.name
            )

        country, province, city, district = normalize_region(
            text(payload, "country"),
            text(payload, "region"),
            text(payload, "city"),
            region_code_hint=text(payload, "country_code"),
        )
        return GeoResult(
            asnumber=asn_digits(payload.get("asn")),
            country=country,
            province=province,
            city=city,
            district=district,
            owner=text(payload, "isp") or text(payload, "asn_organization"),
            latitude=to_float(payload.get("latitude")),
            longitude=to_float(payload.get("longitude")),
            source=self.name,
        )
