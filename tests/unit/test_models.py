import ipaddress

import pytest

from tracegeo.models import GeoFeedEntry, GeoResult, ProviderDescriptor


def test_geo_result_defaults():
    result = GeoResult()
    assert result.asnumber == ""
    assert result.latitude == 0.0
    assert result.longitude == 0.0
    assert not result.has_coordinates


def test_geo_result_location_skips_empty_and_repeated_parts():
    result = GeoResult(country="Germany", province="Berlin", city="Berlin")
    assert result.location() == "Germany Berlin"


def test_geo_result_to_dict():
    result = GeoResult(asnumber="13335", country="US", latitude=1.5, source="ipapi")
    data = result.to_dict()
    assert data["asnumber"] == "13335"
    assert data["latitude"] == 1.5
    assert data["source"] == "ipapi"
    assert set(data) == {
        "asnumber",
        "country",
        "province",
        "city",
        "district",
        "owner",
        "latitude",
        "longitude",
        "source",
    }


def test_geofeed_entry_properties():
    entry = GeoFeedEntry(
        network=ipaddress.ip_network("192.0.2.0/25"),
        country_code="US",
        iso3166_region="US-CA",
        city="Los Angeles",
    )
    assert entry.cidr == "192.0.2.0/25"
    assert entry.prefixlen == 25
    assert entry.asn == ""


def test_provider_descriptor_is_frozen():
    descriptor = ProviderDescriptor(name="x", requires_network=True)
    with pytest.raises(AttributeError):
        descriptor.name = "y"
