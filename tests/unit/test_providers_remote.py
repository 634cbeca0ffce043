import httpx
import pytest
import respx

from tracegeo.config import AppSettings
from tracegeo.constants import BROWSER_USER_AGENT, IPAPI_FIELDS
from tracegeo.errors import (
    ConfigurationError,
    EmptyResponseError,
    LookupMissError,
    NetworkError,
    ProviderTimeoutError,
    UpstreamRejectedError,
)
from tracegeo.providers import IPApiProvider, IPInfoProvider, IPSBProvider
from tracegeo.providers.base import asn_digits, to_float

IPAPI_URL = "http://ip-api.com/json/8.8.8.8"
IPSB_URL = "https://api.ip.sb/geoip/1.1.1.1"
IPINFO_URL = "https://ipinfo.io/8.8.4.4"


@pytest.mark.parametrize(
    "value, expected",
    [
        ("AS15169 Google LLC", "15169"),
        ("AS13335", "13335"),
        (13335, "13335"),
        ("", ""),
        (None, ""),
        ("no digits", ""),
    ],
)
def test_asn_digits(value, expected):
    assert asn_digits(value) == expected


@pytest.mark.parametrize(
    "value, expected",
    [("37.4056", 37.4056), (-122.0775, -122.0775), ("", 0.0), (None, 0.0), ("n/a", 0.0)],
)
def test_to_float(value, expected):
    assert to_float(value) == expected


class TestIPApi:
    @pytest.mark.asyncio
    @respx.mock
    async def test_success(self):
        route = respx.get(IPAPI_URL).mock(
            return_value=httpx.Response(
                200,
                json={
                    "status": "success",
                    "country": "United States",
                    "regionName": "California",
                    "city": "Mountain View",
                    "district": "",
                    "isp": "Google LLC",
                    "as": "AS15169 Google LLC",
                    "lat": 37.4056,
                    "lon": "-122.0775",
                },
            )
        )

        result = await IPApiProvider().resolve("8.8.8.8", timeout=2)

        assert result.asnumber == "15169"
        assert result.country == "United States"
        assert result.province == "California"
        assert result.city == "Mountain View"
        assert result.owner == "Google LLC"
        assert result.latitude == pytest.approx(37.4056)
        assert result.longitude == pytest.approx(-122.0775)
        assert result.source == "ipapi"

        request = route.calls.last.request
        assert request.url.params["fields"] == IPAPI_FIELDS
        assert request.headers["user-agent"] == BROWSER_USER_AGENT

    @pytest.mark.asyncio
    @respx.mock
    async def test_hong_kong_is_normalized(self):
        respx.get(IPAPI_URL).mock(
            return_value=httpx.Response(
                200,
                json={
                    "status": "success",
                    "country": "Hong Kong",
                    "regionName": "Central and Western",
                    "city": "Central",
                    "district": "",
                    "isp": "Example",
                    "as": "AS64500 Example",
                },
            )
        )

        result = await IPApiProvider().resolve("8.8.8.8")

        assert result.country == "China"
        assert result.province == "Hong Kong"
        assert result.city == ""
        assert result.district == "Central and Western Central"

    @pytest.mark.asyncio
    @respx.mock
    async def test_failure_status_is_rejected(self):
        respx.get(IPAPI_URL).mock(
            return_value=httpx.Response(200, json={"status": "fail", "message": "reserved range"})
        )

        with pytest.raises(UpstreamRejectedError, match="reserved range") as excinfo:
            await IPApiProvider().resolve("8.8.8.8")
        assert excinfo.value.context == "ipapi"

    @pytest.mark.asyncio
    @respx.mock
    async def test_throttled(self):
        respx.get(IPAPI_URL).mock(return_value=httpx.Response(429, text="Too Many Requests"))

        with pytest.raises(UpstreamRejectedError) as excinfo:
            await IPApiProvider().resolve("8.8.8.8")
        assert excinfo.value.status_code == 429

    @pytest.mark.asyncio
    @respx.mock
    async def test_empty_payload(self):
        respx.get(IPAPI_URL).mock(return_value=httpx.Response(200, json={}))

        with pytest.raises(EmptyResponseError):
            await IPApiProvider().resolve("8.8.8.8")

    @pytest.mark.asyncio
    @respx.mock
    async def test_zeroed_payload_is_empty_not_rejected(self):
        zeroed = {
            "status": "",
            "message": "",
            "country": "",
            "regionName": "",
            "city": "",
            "isp": "",
            "district": "",
            "as": "",
            "lat": 0,
            "lon": 0,
        }
        respx.get(IPAPI_URL).mock(return_value=httpx.Response(200, json=zeroed))

        with pytest.raises(EmptyResponseError):
            await IPApiProvider().resolve("8.8.8.8")

    @pytest.mark.asyncio
    @respx.mock
    async def test_success_without_location_is_empty(self):
        respx.get(IPAPI_URL).mock(return_value=httpx.Response(200, json={"status": "success"}))

        with pytest.raises(EmptyResponseError):
            await IPApiProvider().resolve("8.8.8.8")

    @pytest.mark.asyncio
    @respx.mock
    async def test_html_interception_page(self):
        respx.get(IPAPI_URL).mock(
            return_value=httpx.Response(200, text="<html><body>Just a moment...</body></html>")
        )

        with pytest.raises(EmptyResponseError):
            await IPApiProvider().resolve("8.8.8.8")

    @pytest.mark.asyncio
    @respx.mock
    async def test_timeout(self):
        respx.get(IPAPI_URL).mock(side_effect=httpx.ReadTimeout)

        with pytest.raises(ProviderTimeoutError) as excinfo:
            await IPApiProvider().resolve("8.8.8.8", timeout=0.5)
        assert excinfo.value.retryable
        assert isinstance(excinfo.value, TimeoutError)

    @pytest.mark.asyncio
    @respx.mock
    async def test_connection_error(self):
        respx.get(IPAPI_URL).mock(side_effect=httpx.ConnectError)

        with pytest.raises(NetworkError) as excinfo:
            await IPApiProvider().resolve("8.8.8.8")
        assert not isinstance(excinfo.value, ProviderTimeoutError)

    @pytest.mark.asyncio
    @respx.mock
    async def test_base_url_override(self):
        route = respx.get("https://mirror.example/ipapi/json/8.8.8.8").mock(
            return_value=httpx.Response(
                200, json={"status": "success", "country": "United States", "as": "AS1"}
            )
        )

        provider = IPApiProvider(base_url="https://mirror.example/ipapi/json")
        result = await provider.resolve("8.8.8.8")

        assert route.called
        assert result.asnumber == "1"

    @pytest.mark.asyncio
    @respx.mock
    async def test_retries_from_settings_reach_the_transport(self, mocker):
        respx.get(IPAPI_URL).mock(
            return_value=httpx.Response(
                200, json={"status": "success", "country": "United States", "as": "AS1"}
            )
        )
        transport = mocker.patch(
            "tracegeo.http_client.httpx.AsyncHTTPTransport", wraps=httpx.AsyncHTTPTransport
        )

        provider = IPApiProvider.from_settings(AppSettings(RETRIES=3))
        await provider.resolve("8.8.8.8")

        assert provider.retries == 3
        transport.assert_called_once_with(retries=3)


class TestIPSB:
    @pytest.mark.asyncio
    @respx.mock
    async def test_success(self):
        route = respx.get(IPSB_URL).mock(
            return_value=httpx.Response(
                200,
                json={
                    "ip": "1.1.1.1",
                    "asn": 13335,
                    "asn_organization": "Cloudflare, Inc.",
                    "isp": "Cloudflare",
                    "country": "Australia",
                    "country_code": "AU",
                    "region": "New South Wales",
                    "city": "Sydney",
                    "latitude": -33.494,
                    "longitude": 143.2104,
                },
            )
        )

        result = await IPSBProvider().resolve("1.1.1.1")

        assert result.asnumber == "13335"
        assert result.country == "Australia"
        assert result.province == "New South Wales"
        assert result.city == "Sydney"
        assert result.owner == "Cloudflare"
        assert result.latitude == pytest.approx(-33.494)
        assert route.calls.last.request.headers["user-agent"] == BROWSER_USER_AGENT

    @pytest.mark.asyncio
    @respx.mock
    async def test_taiwan_is_normalized(self):
        respx.get(IPSB_URL).mock(
            return_value=httpx.Response(
                200,
                json={
                    "asn": 3462,
                    "isp": "Chunghwa Telecom",
                    "country": "Taiwan",
                    "country_code": "TW",
                    "region": "Taipei City",
                    "city": "Taipei",
                },
            )
        )

        result = await IPSBProvider().resolve("1.1.1.1")

        assert (result.country, result.province, result.city, result.district) == (
            "China",
            "Taiwan",
            "",
            "Taipei City Taipei",
        )

    @pytest.mark.asyncio
    @respx.mock
    async def test_missing_country_is_empty_response(self):
        respx.get(IPSB_URL).mock(return_value=httpx.Response(200, json={"ip": "1.1.1.1"}))

        with pytest.raises(EmptyResponseError, match="Cloudflare"):
            await IPSBProvider().resolve("1.1.1.1")

    @pytest.mark.asyncio
    @respx.mock
    async def test_forbidden_is_rejected(self):
        respx.get(IPSB_URL).mock(return_value=httpx.Response(403, text="blocked"))

        with pytest.raises(UpstreamRejectedError) as excinfo:
            await IPSBProvider().resolve("1.1.1.1")
        assert excinfo.value.status_code == 403


class TestIPInfo:
    @pytest.mark.asyncio
    async def test_requires_token(self):
        with pytest.raises(ConfigurationError):
            await IPInfoProvider().resolve("8.8.4.4")

    @pytest.mark.asyncio
    @respx.mock
    async def test_success(self):
        route = respx.get(IPINFO_URL).mock(
            return_value=httpx.Response(
                200,
                json={
                    "ip": "8.8.4.4",
                    "city": "Mountain View",
                    "region": "California",
                    "country": "US",
                    "loc": "37.4056,-122.0775",
                    "org": "AS15169 Google LLC",
                },
            )
        )

        result = await IPInfoProvider().resolve("8.8.4.4", token="secret123", extended=True)

        assert result.asnumber == "15169"
        assert result.owner == "Google LLC"
        assert result.country == "US"
        assert result.province == "California"
        assert result.latitude == pytest.approx(37.4056)
        assert result.longitude == pytest.approx(-122.0775)
        assert route.calls.last.request.url.params["token"] == "secret123"

    @pytest.mark.asyncio
    @respx.mock
    async def test_coordinates_only_when_extended(self):
        respx.get(IPINFO_URL).mock(
            return_value=httpx.Response(
                200, json={"country": "US", "loc": "37.4056,-122.0775", "org": "AS15169 Google"}
            )
        )

        result = await IPInfoProvider().resolve("8.8.4.4", token="secret123")

        assert not result.has_coordinates

    @pytest.mark.asyncio
    @respx.mock
    async def test_bogon_is_a_miss(self):
        respx.get("https://ipinfo.io/10.0.0.1").mock(
            return_value=httpx.Response(200, json={"ip": "10.0.0.1", "bogon": True})
        )

        with pytest.raises(LookupMissError):
            await IPInfoProvider().resolve("10.0.0.1", token="secret123")

    @pytest.mark.asyncio
    @respx.mock
    async def test_empty_payload(self):
        respx.get(IPINFO_URL).mock(return_value=httpx.Response(200, json={"ip": "8.8.4.4"}))

        with pytest.raises(EmptyResponseError):
            await IPInfoProvider().resolve("8.8.4.4", token="secret123")

    @pytest.mark.asyncio
    @respx.mock
    async def test_org_without_asn(self):
        respx.get(IPINFO_URL).mock(
            return_value=httpx.Response(200, json={"country": "HK", "org": "Example Ltd"})
        )

        result = await IPInfoProvider().resolve("8.8.4.4", token="secret123")

        assert result.asnumber == ""
        assert result.owner == "Example Ltd"
        assert result.country == "China"
        assert result.province == "Hong Kong"
