"""
Resolution of hop addresses.

The local geofeed is authoritative: when it has an entry for the address the
providers are never consulted. Otherwise the configured providers answer,
either one after another (``sequential``) or all at once with the first
success winning (``race``).
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Sequence

from .config import AppSettings
from .constants import GEO_TIMEOUT, GEOFEED_SOURCE, STRATEGIES
from .errors import ConfigurationError, GeoError, ResolutionError
from .geofeed import GeofeedStore
from .models import GeoFeedEntry, GeoResult
from .normalize import normalize_region
from .providers import GeoProvider, get_provider
from .providers.base import asn_digits

logger = logging.getLogger(__name__)


def result_from_entry(entry: GeoFeedEntry) -> GeoResult:
    """Map a geofeed row to a GeoResult; geofeeds carry no coordinates."""
    country, province, city, district = normalize_region(
        entry.country_code,
        entry.iso3166_region,
        entry.city,
        region_code_hint=entry.country_code,
    )
    return GeoResult(
        asnumber=asn_digits(entry.asn),
        country=country,
        province=province,
        city=city,
        district=district,
        owner=entry.network_owner,
        source=GEOFEED_SOURCE,
    )


class Resolver:
    """Geofeed first, then the configured providers."""

    def __init__(
        self,
        store: Optional[GeofeedStore] = None,
        providers: Sequence[GeoProvider] = (),
        *,
        timeout: float = GEO_TIMEOUT,
        token: str = "",
        extended: bool = False,
        strategy: str = "sequential",
    ):
        if strategy not in STRATEGIES:
            raise ConfigurationError(
                f"unknown strategy {strategy!r} (expected one of {', '.join(STRATEGIES)})"
            )
        self.store = store
        self.providers: List[GeoProvider] = list(providers)
        self.timeout = timeout
        self.token = token
        self.extended = extended
        self.strategy = strategy

    @classmethod
    def from_settings(cls, settings: Optional[AppSettings] = None) -> "Resolver":
        settings = settings or AppSettings()
        return cls(
            GeofeedStore(settings.GEOFEED_PATH),
            [get_provider(name, settings) for name in settings.PROVIDERS],
            timeout=settings.TIMEOUT,
            token=settings.TOKEN,
            extended=settings.EXTENDED,
            strategy=settings.STRATEGY,
        )

    async def local_lookup(self, ip: str) -> Optional[GeoResult]:
        """Geofeed match for ``ip``; any geofeed failure counts as no match."""
        if self.store is None:
            return None
        try:
            # first use reads and parses the whole file
            entry = await asyncio.to_thread(self.store.lookup, ip)
        except GeoError as e:
            logger.debug("Geofeed unavailable, falling through to providers: %s", e)
            return None
        if entry is None:
            return None
        logger.debug("Geofeed match for %s: %s", ip, entry.cidr)
        return result_from_entry(entry)

    async def resolve_ip(self, ip: str) -> GeoResult:
        """
        Resolve ``ip``.

        Returns:
            The geofeed match, or the first successful provider answer.

        Raises:
            ConfigurationError: No geofeed match and no provider configured.
            GeoError: The single configured provider failed.
            ResolutionError: Several providers were configured and all failed.
        """
        local = await self.local_lookup(ip)
        if local is not None:
            return local

        if not self.providers:
            raise ConfigurationError("no provider configured", context=ip)
        if len(self.providers) == 1:
            return await self._call(self.providers[0], ip)
        if self.strategy == "race":
            return await self._race(ip)
        return await self._sequential(ip)

    async def _call(self, provider: GeoProvider, ip: str) -> GeoResult:
        return await provider.resolve(
            ip, timeout=self.timeout, token=self.token, extended=self.extended
        )

    async def _sequential(self, ip: str) -> GeoResult:
        errors: List[GeoError] = []
        for provider in self.providers:
            try:
                return await self._call(provider, ip)
            except GeoError as e:
                logger.info("%s failed for %s: %s", provider.name, ip, e)
                errors.append(e)
        raise ResolutionError(errors, context=ip)

    async def _race(self, ip: str) -> GeoResult:
        tasks = {
            asyncio.create_task(self._call(provider, ip), name=provider.name): provider
            for provider in self.providers
        }
        errors: List[GeoError] = []
        pending = set(tasks)
        try:
            while pending:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                for task in done:
                    error = task.exception()
                    if error is None:
                        logger.debug("%s won the race for %s", tasks[task].name, ip)
                        return task.result()
                    if not isinstance(error, GeoError):
                        raise error
                    logger.info("%s failed for %s: %s", tasks[task].name, ip, error)
                    errors.append(error)
        finally:
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
        raise ResolutionError(errors, context=ip)

    def lookup_sync(self, ip: str) -> GeoResult:
        """Blocking wrapper for callers without an event loop."""
        return asyncio.run(self.resolve_ip(ip))
