"""ipinfo country + ASN database adapter (``ipinfoLocal.mmdb``)."""

from __future__ import annotations

from pathlib import Path

from ..constants import IPINFO_LOCAL_FILENAME
from ..errors import FormatError, GeoIOError, LookupMissError
from ..models import GeoResult, ProviderDescriptor
from ..normalize import normalize_region
from .base import asn_digits, text
from .local import LocalDatabaseProvider


class IPInfoLocalProvider(LocalDatabaseProvider):
    descriptor = ProviderDescriptor(
        name="ipinfolocal",
        requires_network=False,
        description="ipinfo free country+ASN mmdb on disk",
    )
    filename = IPINFO_LOCAL_FILENAME

    def lookup(self, path: Path, ip: str, extended: bool) -> GeoResult:
        import maxminddb

        try:
            reader = maxminddb.open_database(str(path))
        except (OSError, maxminddb.InvalidDatabaseError) as e:
            raise GeoIOError(f"cannot open {path}: {e}", context=self.name) from e

        with reader:
            try:
                record = reader.get(ip)
            except ValueError as e:
                raise LookupMissError(f"{ip!r} is not a valid address", context=self.name) from e
            except maxminddb.InvalidDatabaseError as e:
                raise FormatError(f"corrupt record in {path}: {e}", context=self.name) from e

        if record is None:
            raise LookupMissError(f"no results for {ip}", context=self.name)
        if not isinstance(record, dict):
            raise FormatError(
                f"unexpected record format {type(record).__name__}", context=self.name
            )

        country, province, city, district = normalize_region(
            text(record, "country_name"), region_code_hint=text(record, "country")
        )
        return GeoResult(
            asnumber=asn_digits(record.get("asn")),
            country=country,
            province=province,
            city=city,
            district=district,
            owner=text(record, "as_name"),
            source=self.name,
        )
