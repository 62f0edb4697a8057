"""Geocoding application service.

Maps validated command arguments onto Nominatim query parameters, builds the
RequestDescriptor and sends it through the request pipeline.
"""

import logging
from typing import Any, Dict

from simple_nominatim.core.validation import (
    FreeFormSearchArgs, OutputArgs, ReverseGeocodeArgs, SearchArgs,
    ServiceStatusArgs, StructuredSearchArgs,
)
from simple_nominatim.domain.models.common import REVERSE_PATH, SEARCH_PATH, STATUS_PATH
from simple_nominatim.domain.models.request import ApiResponse, RequestDescriptor
from simple_nominatim.infrastructure.resilience.request_pipeline import RequestPipeline

logger = logging.getLogger(__name__)


def _output_params(args: OutputArgs) -> Dict[str, Any]:
    return {
        "email": args.email,
        "addressdetails": args.addressdetails,
        "extratags": args.extratags,
        "namedetails": args.namedetails,
        "entrances": args.entrances,
        "accept-language": args.accept_language or None,
        "polygon_geojson": args.polygon_geojson,
        "polygon_kml": args.polygon_kml,
        "polygon_svg": args.polygon_svg,
        "polygon_text": args.polygon_text,
        "polygon_threshold": args.polygon_threshold,
        "json_callback": args.json_callback or None,
        "debug": args.debug,
    }


def _search_params(args: SearchArgs) -> Dict[str, Any]:
    return {
        "format": args.format,
        "limit": args.limit,
        **_output_params(args),
        "countrycodes": args.countrycodes or None,
        "layer": args.layer or None,
        "featureType": args.featuretype,
        "exclude_place_ids": args.exclude_place_ids or None,
        "viewbox": args.viewbox or None,
        "bounded": args.bounded,
        "dedupe": args.dedupe,
    }


class GeocodingService:
    """Application service for the four Nominatim operations."""

    def __init__(self, pipeline: RequestPipeline):
        self.pipeline = pipeline

    async def reverse_geocode(self, args: ReverseGeocodeArgs) -> ApiResponse:
        """Finds the address closest to a coordinate."""
        params = {
            "lat": args.latitude,
            "lon": args.longitude,
            "format": args.format,
            **_output_params(args),
            "zoom": args.zoom,
            "layer": args.layer or None,
        }
        logger.info(f"Reverse geocoding ({args.latitude}, {args.longitude})")
        return await self.pipeline.execute(RequestDescriptor.create(REVERSE_PATH, params))

    async def free_form_search(self, args: FreeFormSearchArgs) -> ApiResponse:
        """Searches with a free-form query string."""
        params = {"q": args.query, **_search_params(args)}
        logger.info(f"Free-form search for '{args.query}'")
        return await self.pipeline.execute(RequestDescriptor.create(SEARCH_PATH, params))

    async def structured_search(self, args: StructuredSearchArgs) -> ApiResponse:
        """Searches with individual address components."""
        params = {
            "amenity": args.amenity or None,
            "street": args.street or None,
            "city": args.city or None,
            "county": args.county or None,
            "state": args.state or None,
            "country": args.country,
            "postalcode": args.postalcode or None,
            **_search_params(args),
        }
        logger.info(f"Structured search in '{args.country}'")
        return await self.pipeline.execute(RequestDescriptor.create(SEARCH_PATH, params))

    async def service_status(self, args: ServiceStatusArgs) -> ApiResponse:
        """Reports on the state of the service and database."""
        logger.info("Querying service status")
        return await self.pipeline.execute(
            RequestDescriptor.create(STATUS_PATH, {"format": args.format})
        )
