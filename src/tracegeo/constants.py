"""Centralized constants for all modules."""

# Timeouts (seconds)
GEO_TIMEOUT = 2

# Browser identity; ip.sb and ip-api reject default client user agents
BROWSER_USER_AGENT = "Mozilla/5.0 (X11; Linux x86_64; rv:100.0) Gecko/20100101 Firefox/100.0"

# Remote endpoints (overridable per deployment)
DEFAULT_BASE_URLS = {
    "ipapi": "http://ip-api.com/json/",
    "ipsb": "https://api.ip.sb/geoip/",
    "ipinfo": "https://ipinfo.io/",
}

IPAPI_FIELDS = "status,message,country,regionName,city,isp,district,as,lat,lon"

# Local databases
IPINFO_LOCAL_FILENAME = "ipinfoLocal.mmdb"
GEOLITE2_CITY_FILENAME = "GeoLite2-City.mmdb"

# System-wide search folders (non-Windows only)
SYSTEM_DATA_DIRS = [
    "/usr/local/share/tracegeo/",
    "/usr/share/tracegeo/",
]

# Geofeed rows: 4 columns, or at least 6 with ASN and owner
GEOFEED_SHORT_ROW = 4
GEOFEED_LONG_ROW = 6

GEOFEED_SOURCE = "geofeed"

# Provider composition
STRATEGIES = ["sequential", "race"]
