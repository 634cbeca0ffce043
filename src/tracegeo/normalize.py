"""Shared policy for reporting Hong Kong, Macao and Taiwan.

Providers disagree on how these territories are reported: some return them
as countries by name, others by ISO code, and the locality fields vary. Every
provider passes its raw fields through :func:`normalize_region` so that the
output shape is the same whichever backend answered:

* ``country``  -> ``"China"``
* ``province`` -> the territory name (``"Hong Kong"``, ``"Macao"``, ``"Taiwan"``)
* ``city``     -> ``""``
* ``district`` -> the original province, city and district values, in that
  order, de-duplicated and joined with single spaces

Any other country value is kept only when it is a recognized ISO 3166 code or
country name; anything else becomes ``""``.
"""

from __future__ import annotations

from typing import Dict, Tuple

from .countries import recognized_country

CANONICAL_COUNTRY = "China"

# Country codes, ISO 3166-2 subdivision codes and names -> canonical territory
# name. Keys are casefolded.
TERRITORIES: Dict[str, str] = {
    "hk": "Hong Kong",
    "cn-hk": "Hong Kong",
    "hong kong": "Hong Kong",
    "hongkong": "Hong Kong",
    "hong kong sar": "Hong Kong",
    "hong kong sar china": "Hong Kong",
    "香港": "Hong Kong",
    "中国香港": "Hong Kong",
    "mo": "Macao",
    "cn-mo": "Macao",
    "macao": "Macao",
    "macau": "Macao",
    "macao sar": "Macao",
    "macao sar china": "Macao",
    "澳门": "Macao",
    "中国澳门": "Macao",
    "tw": "Taiwan",
    "cn-tw": "Taiwan",
    "taiwan": "Taiwan",
    "taiwan, province of china": "Taiwan",
    "台湾": "Taiwan",
    "中国台湾": "Taiwan",
}

_CHINA = frozenset({"cn", CANONICAL_COUNTRY.casefold()})


def territory_for(value: str) -> str:
    """Return the canonical territory name for a code or name, or ``""``."""

    return TERRITORIES.get(" ".join(value.split()).casefold(), "") if value else ""


def _detect(country: str, province: str, hint: str) -> str:
    territory = territory_for(country) or territory_for(hint)
    if territory:
        return territory
    # CN with a CN-HK style subdivision, or output that is already normalized
    if country.casefold() in _CHINA:
        return territory_for(province)
    return ""


def normalize_region(
    country: str,
    province: str = "",
    city: str = "",
    district: str = "",
    region_code_hint: str = "",
) -> Tuple[str, str, str, str]:
    """Collapse disputed-region reporting into the canonical shape.

    ``region_code_hint`` carries an ISO country code when the provider
    reports the country by name and the code separately.

    Returns:
        ``(country, province, city, district)``
    """
    country = (country or "").strip()
    province = (province or "").strip()
    city = (city or "").strip()
    district = (district or "").strip()

    territory = _detect(country, province, (region_code_hint or "").strip())
    if not territory:
        return recognized_country(country), province, city, district

    locality: list[str] = []
    for part in (province, city, district):
        if part and part not in locality and not territory_for(part):
            locality.append(part)

    return CANONICAL_COUNTRY, territory, "", " ".join(locality)
