"""Local CIDR -> location override table (geofeed).

A geofeed is a comma separated file with one network per row::

    192.0.2.0/24,US-CA,US,Mountain View
    192.0.2.128/25,US-CA,US,Los Angeles,64496,Example Networks

Rows carry either exactly four columns or at least six (ASN and network
owner appended; anything after the sixth column is ignored).
"""

from __future__ import annotations

import csv
import ipaddress
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Tuple

from .constants import GEOFEED_LONG_ROW, GEOFEED_SHORT_ROW
from .errors import ConfigurationError, FormatError, GeoIOError
from .models import GeoFeedEntry

logger = logging.getLogger(__name__)


def _specificity_key(entry: GeoFeedEntry) -> Tuple[int, int, int]:
    # Longest prefix first; family and network address keep ties deterministic
    return (-entry.network.prefixlen, entry.network.version, int(entry.network.network_address))


def _parse_row(row: List[str]) -> Optional[GeoFeedEntry]:
    fields = [value.strip() for value in row]
    if len(fields) != GEOFEED_SHORT_ROW and len(fields) < GEOFEED_LONG_ROW:
        return None
    if not fields[0] or fields[0].startswith("#"):
        return None
    try:
        network = ipaddress.ip_network(fields[0], strict=False)
    except ValueError:
        return None

    asn, owner = (fields[4], fields[5]) if len(fields) >= GEOFEED_LONG_ROW else ("", "")
    return GeoFeedEntry(
        network=network,
        iso3166_region=fields[1],
        country_code=fields[2],
        city=fields[3],
        asn=asn,
        network_owner=owner,
    )


@dataclass(frozen=True)
class GeoFeedIndex:
    """Immutable, specificity-ordered collection of geofeed entries."""

    entries: Tuple[GeoFeedEntry, ...] = ()
    skipped: int = 0
    source: str = ""

    @classmethod
    def from_entries(
        cls, entries: Iterable[GeoFeedEntry], skipped: int = 0, source: str = ""
    ) -> "GeoFeedIndex":
        return cls(tuple(sorted(entries, key=_specificity_key)), skipped, source)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[GeoFeedEntry]:
        return iter(self.entries)

    def lookup(self, ip: str) -> Optional[GeoFeedEntry]:
        """
        Find the most specific entry containing ``ip``.

        Args:
            ip: Address to look up. Unparsable input is treated as a miss.

        Returns:
            The matching entry, or None.
        """
        try:
            address = ipaddress.ip_address(ip.strip())
        except (ValueError, AttributeError):
            return None

        candidates = [address]
        if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped:
            candidates.append(address.ipv4_mapped)

        for entry in self.entries:
            if any(candidate in entry.network for candidate in candidates):
                return entry
        return None


def load_geofeed(path: Optional[str | Path]) -> GeoFeedIndex:
    """
    Read and index a geofeed file.

    Malformed rows are dropped and counted; the load itself only fails when
    the file cannot be used at all.

    Args:
        path: Geofeed location. Empty means the geofeed is not configured.

    Returns:
        A new GeoFeedIndex.

    Raises:
        ConfigurationError: No path configured.
        GeoIOError: The file cannot be opened or read.
        FormatError: The file is not parseable CSV text.
    """
    if not path:
        raise ConfigurationError("geofeed path not configured", context="geofeed")

    feed_path = Path(path)
    entries: List[GeoFeedEntry] = []
    skipped = 0
    try:
        with feed_path.open("r", encoding="utf-8", newline="") as handle:
            for row in csv.reader(handle, strict=True):
                if not row or not any(value.strip() for value in row):
                    continue
                entry = _parse_row(row)
                if entry is None:
                    skipped += 1
                    continue
                entries.append(entry)
    except csv.Error as e:
        raise FormatError(f"cannot parse {feed_path}: {e}", context="geofeed") from e
    except UnicodeDecodeError as e:
        raise FormatError(f"{feed_path} is not UTF-8 text: {e}", context="geofeed") from e
    except OSError as e:
        raise GeoIOError(f"cannot read {feed_path}: {e}", context="geofeed") from e

    logger.debug("Loaded %d geofeed entries from %s (%d skipped)", len(entries), feed_path, skipped)
    return GeoFeedIndex.from_entries(entries, skipped=skipped, source=str(feed_path))


class GeofeedStore:
    """Loads a geofeed once and answers containment queries against it."""

    def __init__(self, path: Optional[str | Path] = None):
        self.path = str(path) if path else ""
        self._index: Optional[GeoFeedIndex] = None
        self._lock = threading.Lock()

    @property
    def loaded(self) -> bool:
        return self._index is not None

    def load(self) -> GeoFeedIndex:
        """Return the cached index, loading it on first use."""
        index = self._index
        if index is None:
            with self._lock:
                if self._index is None:
                    self._index = load_geofeed(self.path)
                index = self._index
        return index

    def reload(self) -> GeoFeedIndex:
        """Replace the cached index with a fresh load of the file."""
        index = load_geofeed(self.path)
        with self._lock:
            self._index = index
        return index

    def lookup(self, ip: str) -> Optional[GeoFeedEntry]:
        return self.load().lookup(ip)
