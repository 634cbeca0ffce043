"""ip-api.com adapter."""

from __future__ import annotations

import logging
from typing import Optional

from ..constants import IPAPI_FIELDS
from ..errors import EmptyResponseError, UpstreamRejectedError
from ..models import GeoResult, ProviderDescriptor
from ..normalize import normalize_region
from .base import RemoteProvider, asn_digits, text, to_float

logger = logging.getLogger(__name__)

_LOCATION_FIELDS = ("country", "regionName", "city", "as", "isp")


class IPApiProvider(RemoteProvider):
    descriptor = ProviderDescriptor(
        name="ipapi",
        requires_network=True,
        supports_base_url=True,
        description="ip-api.com free JSON endpoint",
    )

    async def resolve(
        self,
        ip: str,
        timeout: Optional[float] = None,
        token: str = "",
        extended: bool = False,
    ) -> GeoResult:
        payload = await self.get_json(self.url_for(ip), timeout, params={"fields": IPAPI_FIELDS})

        status = text(payload, "status")
        if not status:
            raise EmptyResponseError("response carried no status", context=self.name)

        if status != "success":
            message = text(payload, "message") or "request was not successful"
            logger.info("ip-api rejected %s: %s", ip, message)
            raise UpstreamRejectedError(message, context=self.name)

        if not any(text(payload, key) for key in _LOCATION_FIELDS):
            raise EmptyResponseError("response carried no geolocation fields", context=self.name)

        country, province, city, district = normalize_region(
            text(payload, "country"),
            text(payload, "regionName"),
            text(payload, "city"),
            text(payload, "district"),
        )
        return GeoResult(
            asnumber=asn_digits(payload.get("as")),
            country=country,
            province=province,
            city=city,
            district=district,
            owner=text(payload, "isp"),
            latitude=to_float(payload.get("lat")),
            longitude=to_float(payload.get("lon")),
            source=self.name,
        )
