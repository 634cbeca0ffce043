"""Provider interface and the shared plumbing for remote JSON APIs."""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar, Dict, Optional

import httpx

from ..constants import DEFAULT_BASE_URLS, GEO_TIMEOUT
from ..errors import NetworkError, ProviderTimeoutError, UpstreamRejectedError
from ..http_client import get_client
from ..models import GeoResult, ProviderDescriptor

if TYPE_CHECKING:  # pragma: no cover
    from ..config import AppSettings

logger = logging.getLogger(__name__)

_DIGITS = re.compile(r"[0-9]+")


def asn_digits(value: Any) -> str:
    """Return the first run of digits in an ASN field ("AS13335 Cloudflare" -> "13335")."""
    if value is None:
        return ""
    match = _DIGITS.search(str(value))
    return match.group(0) if match else ""


def to_float(value: Any) -> float:
    """Coerce a coordinate from text or number; unknown becomes 0.0."""
    if value is None or value == "":
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def text(payload: Dict[str, Any], key: str) -> str:
    value = payload.get(key)
    return "" if value is None else str(value).strip()


class GeoProvider(ABC):
    """A data source able to answer a geolocation query for one address."""

    descriptor: ClassVar[ProviderDescriptor]

    @property
    def name(self) -> str:
        return self.descriptor.name

    @classmethod
    @abstractmethod
    def from_settings(cls, settings: "AppSettings") -> "GeoProvider":
        """Build the provider from application settings."""

    @abstractmethod
    async def resolve(
        self,
        ip: str,
        timeout: Optional[float] = None,
        token: str = "",
        extended: bool = False,
    ) -> GeoResult:
        """
        Resolve ``ip`` to a normalized GeoResult.

        Args:
            ip: Address to resolve.
            timeout: Budget in seconds for network-backed providers.
            token: Access token for providers that require one.
            extended: Ask for optional data (coordinates) where the backend
                only returns it on request.

        Raises:
            GeoError: A typed subclass describing the failure.
        """

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class RemoteProvider(GeoProvider):
    """Base for HTTP JSON geolocation APIs."""

    def __init__(self, base_url: str = "", retries: int = 0):
        base = base_url or DEFAULT_BASE_URLS[self.descriptor.name]
        self.base_url = base.rstrip("/") + "/"
        self.retries = retries

    @classmethod
    def from_settings(cls, settings: "AppSettings") -> "RemoteProvider":
        return cls(base_url=settings.base_url(cls.descriptor.name), retries=settings.RETRIES)

    def url_for(self, ip: str) -> str:
        return self.base_url + ip.strip()

    async def get_json(
        self,
        url: str,
        timeout: Optional[float] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """
        GET ``url`` and decode a JSON object.

        A body that is not a JSON object decodes to ``{}``; interception pages
        (captchas, portal logins) are HTML and carry none of the fields.
        """
        budget = timeout or GEO_TIMEOUT
        try:
            async with get_client(budget, retries=self.retries) as client:
                response = await client.get(url, params=params)
        except httpx.TimeoutException as e:
            logger.warning(
                "%s did not answer within %.1fs, try another provider", self.name, budget
            )
            raise ProviderTimeoutError(
                f"request timed out after {budget:.1f}s", context=self.name
            ) from e
        except httpx.HTTPError as e:
            logger.warning("%s request failed: %s", self.name, e)
            raise NetworkError(f"request failed: {e}", context=self.name) from e

        status = response.status_code
        if status in (403, 429):
            raise UpstreamRejectedError(
                f"HTTP {status}: rate limited or blocked", context=self.name, status_code=status
            )
        if status >= 400:
            raise UpstreamRejectedError(f"HTTP {status}", context=self.name, status_code=status)

        try:
            payload = response.json()
        except ValueError:
            logger.debug("%s returned a non-JSON body (%d bytes)", self.name, len(response.content))
            return {}
        return payload if isinstance(payload, dict) else {}
