"""simple-nominatim: command-line client for the Nominatim geocoding API."""

__version__ = "1.0.0"
