"""MaxMind GeoLite2-City database adapter."""

from __future__ import annotations

from pathlib import Path

from ..constants import GEOLITE2_CITY_FILENAME
from ..errors import FormatError, GeoIOError, LookupMissError
from ..models import GeoResult, ProviderDescriptor
from ..normalize import normalize_region
from .local import LocalDatabaseProvider


class GeoLite2Provider(LocalDatabaseProvider):
    descriptor = ProviderDescriptor(
        name="geolite2",
        requires_network=False,
        description="MaxMind GeoLite2-City mmdb on disk",
    )
    filename = GEOLITE2_CITY_FILENAME

    def lookup(self, path: Path, ip: str, extended: bool) -> GeoResult:
        import geoip2.database
        import geoip2.errors
        import maxminddb

        try:
            reader = geoip2.database.Reader(str(path))
        except (OSError, maxminddb.InvalidDatabaseError) as e:
            raise GeoIOError(f"cannot open {path}: {e}", context=self.name) from e

        with reader:
            try:
                response = reader.city(ip)
            except geoip2.errors.AddressNotFoundError as e:
                raise LookupMissError(f"no results for {ip}", context=self.name) from e
            except ValueError as e:
                raise LookupMissError(f"{ip!r} is not a valid address", context=self.name) from e
            except TypeError as e:
                # Reader.city() on a database that is not a City edition
                raise FormatError(str(e), context=self.name) from e

        traits = getattr(response, "traits", None)
        asn_number = getattr(traits, "autonomous_system_number", None)
        country, province, city, district = normalize_region(
            response.country.name or "",
            response.subdivisions.most_specific.name or "",
            response.city.name or "",
            region_code_hint=response.country.iso_code or "",
        )
        latitude = longitude = 0.0
        if extended:
            latitude = response.location.latitude or 0.0
            longitude = response.location.longitude or 0.0
        return GeoResult(
            asnumber=str(asn_number) if asn_number is not None else "",
            country=country,
            province=province,
            city=city,
            district=district,
            owner=getattr(traits, "autonomous_system_organization", None) or "",
            latitude=latitude,
            longitude=longitude,
            source=self.name,
        )
