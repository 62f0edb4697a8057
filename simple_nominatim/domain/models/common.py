"""Defines common Value Objects used across different domain contexts.

These objects represent simple values like cache keys, endpoint paths and
output formats, ensuring consistency and type safety.
"""

from enum import Enum
from typing import NewType

# === Caching Context ===
CacheKey = NewType("CacheKey", str)              # Deterministic key for one logical request

# === API Context ===
EndpointPath = NewType("EndpointPath", str)      # e.g. '/reverse', '/search', '/status'
ProcessedOutput = NewType("ProcessedOutput", str) # Text ready to be written to stdout

REVERSE_PATH = EndpointPath("/reverse")
SEARCH_PATH = EndpointPath("/search")
STATUS_PATH = EndpointPath("/status")


class OutputFormat(str, Enum):
    """Serialization formats offered by the search and reverse endpoints."""
    XML = "xml"
    JSON = "json"
    JSONV2 = "jsonv2"
    GEOJSON = "geojson"
    GEOCODEJSON = "geocodejson"


class StatusFormat(str, Enum):
    """Serialization formats offered by the status endpoint."""
    TEXT = "text"
    JSON = "json"


class FeatureType(str, Enum):
    """Fine-grained selection for places from the address layer."""
    COUNTRY = "country"
    STATE = "state"
    CITY = "city"
    SETTLEMENT = "settlement"


# Formats whose payload is JSON and can be re-serialized compactly
JSON_FORMATS = frozenset({"json", "jsonv2", "geojson", "geocodejson"})
