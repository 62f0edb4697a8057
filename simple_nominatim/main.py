"""Main entry point for the simple-nominatim application.

Sets up the Typer CLI application, performs dependency injection (Composition
Root), defines CLI commands, and delegates execution to the CommandHandler.
"""

import asyncio
import logging
from typing import Annotated, Any, Coroutine, Dict, Optional

import typer

from simple_nominatim import __version__
from simple_nominatim.core.command_handler import EXIT_FAILURE, CommandHandler
from simple_nominatim.domain.models.request import PipelineConfig
from simple_nominatim.infrastructure.cli.display import ConsoleDisplay
from simple_nominatim.infrastructure.config.settings import (
    get_base_url, get_config, get_request_timeout, get_user_agent, load_configuration,
)
from simple_nominatim.infrastructure.http.nominatim_transport import (
    DEFAULT_BASE_URL, DEFAULT_TIMEOUT_SECONDS, DEFAULT_USER_AGENT, NominatimTransport,
)
from simple_nominatim.infrastructure.monitoring.logger_setup import resolve_log_level, setup_logging
from simple_nominatim.infrastructure.resilience.request_pipeline import RequestPipeline

logger = logging.getLogger(__name__)

# --- Dependency wiring ---

def create_pipeline(config: PipelineConfig) -> RequestPipeline:
    """Builds the per-invocation pipeline around a fresh HTTP transport."""
    transport = NominatimTransport(
        base_url=get_base_url(DEFAULT_BASE_URL),
        user_agent=get_user_agent(DEFAULT_USER_AGENT),
        timeout=get_request_timeout(DEFAULT_TIMEOUT_SECONDS),
    )
    return RequestPipeline(transport=transport, config=config)


def create_command_handler() -> CommandHandler:
    return CommandHandler(ui=ConsoleDisplay(), pipeline_factory=create_pipeline)


# --- Typer App Definition ---
app = typer.Typer(
    name="simple-nominatim",
    help="CLI tool for interacting with the Nominatim API.",
    add_completion=False,
)


def run_async(coro: Coroutine[Any, Any, int]) -> None:
    """Runs a handler coroutine and exits with the code it returns."""
    try:
        exit_code = asyncio.run(coro)
    except KeyboardInterrupt:
        logger.info("Interrupted by user.")
        ConsoleDisplay().display_error("Interrupted.")
        exit_code = EXIT_FAILURE
    raise typer.Exit(code=exit_code)


# --- Shared options ---

EmailOption = Annotated[Optional[str], typer.Option("--email", "-e", help="Specify an appropriate email address when making large numbers of request.")]
FormatOption = Annotated[str, typer.Option("--format", "-f", help="Specify the desired output format (xml, json, jsonv2, geojson, geocodejson).")]
AddressDetailsOption = Annotated[Optional[int], typer.Option("--addressdetails", help="Include a breakdown of the address into elements (0 or 1).")]
ExtraTagsOption = Annotated[Optional[int], typer.Option("--extratags", help="Include additional information available in the database (0 or 1).")]
NameDetailsOption = Annotated[Optional[int], typer.Option("--namedetails", help="Include a full list of names for the result (0 or 1).")]
EntrancesOption = Annotated[Optional[int], typer.Option("--entrances", help="Include the tagged entrances in the result (0 or 1).")]
AcceptLanguageOption = Annotated[Optional[str], typer.Option("--accept-language", help="Preferred language order for showing search results.")]
LayerOption = Annotated[Optional[str], typer.Option("--layer", help="Select places by themes (comma-separated: address, poi, railway, natural, manmade).")]
PolygonGeojsonOption = Annotated[Optional[int], typer.Option("--polygon-geojson", help="Include full geometry in GeoJSON format (0 or 1).")]
PolygonKmlOption = Annotated[Optional[int], typer.Option("--polygon-kml", help="Include full geometry in KML format (0 or 1).")]
PolygonSvgOption = Annotated[Optional[int], typer.Option("--polygon-svg", help="Include full geometry in SVG format (0 or 1).")]
PolygonTextOption = Annotated[Optional[int], typer.Option("--polygon-text", help="Include full geometry in WKT format (0 or 1).")]
PolygonThresholdOption = Annotated[Optional[float], typer.Option("--polygon-threshold", help="Tolerance in degrees for simplified geometry output.")]
JsonCallbackOption = Annotated[Optional[str], typer.Option("--json-callback", help="Wrap JSON output in a callback function (JSONP).")]
DebugOption = Annotated[Optional[int], typer.Option("--debug", help="Output assorted developer debug information (0 or 1).")]

LimitOption = Annotated[Optional[int], typer.Option("--limit", help="Specify the maximum number of returned results. Cannot be more than 40.")]
CountryCodesOption = Annotated[Optional[str], typer.Option("--countrycodes", help="Limit search results to countries (comma-separated ISO codes, e.g., 'gb,de').")]
FeatureTypeOption = Annotated[Optional[str], typer.Option("--featuretype", help="Fine-grained selection for places from the address layer (country, state, city, settlement).")]
ExcludePlaceIdsOption = Annotated[Optional[str], typer.Option("--exclude-place-ids", help="Comma-separated list of place_ids to skip in results.")]
ViewboxOption = Annotated[Optional[str], typer.Option("--viewbox", help="Bounding box to focus the search (format: x1,y1,x2,y2).")]
BoundedOption = Annotated[Optional[int], typer.Option("--bounded", help="Restrict results to viewbox area only (0 or 1).")]
DedupeOption = Annotated[Optional[int], typer.Option("--dedupe", help="Remove duplicate results (0 or 1).")]

NoCacheOption = Annotated[bool, typer.Option("--no-cache", help="Disable response caching.")]
CacheTtlOption = Annotated[Optional[int], typer.Option("--cache-ttl", help="Cache time-to-live in milliseconds.")]
CacheMaxSizeOption = Annotated[Optional[int], typer.Option("--cache-max-size", help="Maximum number of cached entries.")]
NoRateLimitOption = Annotated[bool, typer.Option("--no-rate-limit", help="Disable rate limiting.")]
RateLimitOption = Annotated[Optional[int], typer.Option("--rate-limit", help="Maximum number of requests per interval.")]
RateLimitIntervalOption = Annotated[Optional[int], typer.Option("--rate-limit-interval", help="Time interval in milliseconds for rate limiting.")]
NoRetryOption = Annotated[bool, typer.Option("--no-retry", help="Disable retry logic on failures.")]
RetryMaxAttemptsOption = Annotated[Optional[int], typer.Option("--retry-max-attempts", help="Maximum number of retry attempts.")]
RetryInitialDelayOption = Annotated[Optional[int], typer.Option("--retry-initial-delay", help="Initial delay in milliseconds before first retry.")]


def _resilience_flags(
    no_cache: bool, cache_ttl: Optional[int], cache_max_size: Optional[int],
    no_rate_limit: bool, rate_limit: Optional[int], rate_limit_interval: Optional[int],
    no_retry: bool, retry_max_attempts: Optional[int], retry_initial_delay: Optional[int],
) -> Dict[str, Any]:
    return {
        "no_cache": no_cache,
        "cache_ttl": cache_ttl,
        "cache_max_size": cache_max_size,
        "no_rate_limit": no_rate_limit,
        "rate_limit": rate_limit,
        "rate_limit_interval": rate_limit_interval,
        "no_retry": no_retry,
        "retry_max_attempts": retry_max_attempts,
        "retry_initial_delay": retry_initial_delay,
    }


def _drop_unset(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return {name: value for name, value in arguments.items() if value is not None}


# --- CLI Commands ---

@app.command(name="reverse:geocode")
def reverse_geocode(
    latitude: Annotated[str, typer.Option("--latitude", help="Specify the latitude of the coordinate.")],
    longitude: Annotated[str, typer.Option("--longitude", help="Specify the longitude of the coordinate.")],
    format: FormatOption,
    email: EmailOption = None,
    addressdetails: AddressDetailsOption = None,
    extratags: ExtraTagsOption = None,
    namedetails: NameDetailsOption = None,
    entrances: EntrancesOption = None,
    accept_language: AcceptLanguageOption = None,
    zoom: Annotated[Optional[int], typer.Option("--zoom", help="Level of detail required for the address (0-18).")] = None,
    layer: LayerOption = None,
    polygon_geojson: PolygonGeojsonOption = None,
    polygon_kml: PolygonKmlOption = None,
    polygon_svg: PolygonSvgOption = None,
    polygon_text: PolygonTextOption = None,
    polygon_threshold: PolygonThresholdOption = None,
    json_callback: JsonCallbackOption = None,
    debug: DebugOption = None,
    no_cache: NoCacheOption = False,
    cache_ttl: CacheTtlOption = None,
    cache_max_size: CacheMaxSizeOption = None,
    no_rate_limit: NoRateLimitOption = False,
    rate_limit: RateLimitOption = None,
    rate_limit_interval: RateLimitIntervalOption = None,
    no_retry: NoRetryOption = False,
    retry_max_attempts: RetryMaxAttemptsOption = None,
    retry_initial_delay: RetryInitialDelayOption = None,
):
    """Perform reverse geocoding."""
    arguments = _drop_unset({
        "latitude": latitude, "longitude": longitude, "format": format, "email": email,
        "addressdetails": addressdetails, "extratags": extratags, "namedetails": namedetails,
        "entrances": entrances, "accept_language": accept_language, "zoom": zoom, "layer": layer,
        "polygon_geojson": polygon_geojson, "polygon_kml": polygon_kml, "polygon_svg": polygon_svg,
        "polygon_text": polygon_text, "polygon_threshold": polygon_threshold,
        "json_callback": json_callback, "debug": debug,
    })
    flags = _resilience_flags(
        no_cache, cache_ttl, cache_max_size, no_rate_limit, rate_limit,
        rate_limit_interval, no_retry, retry_max_attempts, retry_initial_delay,
    )
    run_async(create_command_handler().handle_reverse_geocode(arguments, flags))


@app.command(name="search:free-form")
def free_form_search(
    query: Annotated[str, typer.Option("--query", "-q", help="Specify the free-form query string to search.")],
    format: FormatOption,
    email: EmailOption = None,
    limit: LimitOption = None,
    addressdetails: AddressDetailsOption = None,
    extratags: ExtraTagsOption = None,
    namedetails: NameDetailsOption = None,
    entrances: EntrancesOption = None,
    accept_language: AcceptLanguageOption = None,
    countrycodes: CountryCodesOption = None,
    layer: LayerOption = None,
    featuretype: FeatureTypeOption = None,
    exclude_place_ids: ExcludePlaceIdsOption = None,
    viewbox: ViewboxOption = None,
    bounded: BoundedOption = None,
    polygon_geojson: PolygonGeojsonOption = None,
    polygon_kml: PolygonKmlOption = None,
    polygon_svg: PolygonSvgOption = None,
    polygon_text: PolygonTextOption = None,
    polygon_threshold: PolygonThresholdOption = None,
    json_callback: JsonCallbackOption = None,
    dedupe: DedupeOption = None,
    debug: DebugOption = None,
    no_cache: NoCacheOption = False,
    cache_ttl: CacheTtlOption = None,
    cache_max_size: CacheMaxSizeOption = None,
    no_rate_limit: NoRateLimitOption = False,
    rate_limit: RateLimitOption = None,
    rate_limit_interval: RateLimitIntervalOption = None,
    no_retry: NoRetryOption = False,
    retry_max_attempts: RetryMaxAttemptsOption = None,
    retry_initial_delay: RetryInitialDelayOption = None,
):
    """Perform a free-form search."""
    arguments = _drop_unset({
        "query": query, "format": format, "email": email, "limit": limit,
        "addressdetails": addressdetails, "extratags": extratags, "namedetails": namedetails,
        "entrances": entrances, "accept_language": accept_language, "countrycodes": countrycodes,
        "layer": layer, "featuretype": featuretype, "exclude_place_ids": exclude_place_ids,
        "viewbox": viewbox, "bounded": bounded, "polygon_geojson": polygon_geojson,
        "polygon_kml": polygon_kml, "polygon_svg": polygon_svg, "polygon_text": polygon_text,
        "polygon_threshold": polygon_threshold, "json_callback": json_callback,
        "dedupe": dedupe, "debug": debug,
    })
    flags = _resilience_flags(
        no_cache, cache_ttl, cache_max_size, no_rate_limit, rate_limit,
        rate_limit_interval, no_retry, retry_max_attempts, retry_initial_delay,
    )
    run_async(create_command_handler().handle_free_form_search(arguments, flags))


@app.command(name="search:structured")
def structured_search(
    format: FormatOption,
    country: Annotated[str, typer.Option("--country", help="Specify the country name.")] = "",
    amenity: Annotated[Optional[str], typer.Option("--amenity", help="Specify the name or type of point of interest (POI).")] = None,
    street: Annotated[Optional[str], typer.Option("--street", help="Specify the house number and street name.")] = None,
    city: Annotated[Optional[str], typer.Option("--city", help="Specify the city name.")] = None,
    county: Annotated[Optional[str], typer.Option("--county", help="Specify the county name.")] = None,
    state: Annotated[Optional[str], typer.Option("--state", help="Specify the state name.")] = None,
    postal_code: Annotated[Optional[str], typer.Option("--postal-code", help="Specify the postal code.")] = None,
    email: EmailOption = None,
    limit: LimitOption = None,
    addressdetails: AddressDetailsOption = None,
    extratags: ExtraTagsOption = None,
    namedetails: NameDetailsOption = None,
    entrances: EntrancesOption = None,
    accept_language: AcceptLanguageOption = None,
    countrycodes: CountryCodesOption = None,
    layer: LayerOption = None,
    featuretype: FeatureTypeOption = None,
    exclude_place_ids: ExcludePlaceIdsOption = None,
    viewbox: ViewboxOption = None,
    bounded: BoundedOption = None,
    polygon_geojson: PolygonGeojsonOption = None,
    polygon_kml: PolygonKmlOption = None,
    polygon_svg: PolygonSvgOption = None,
    polygon_text: PolygonTextOption = None,
    polygon_threshold: PolygonThresholdOption = None,
    json_callback: JsonCallbackOption = None,
    dedupe: DedupeOption = None,
    debug: DebugOption = None,
    no_cache: NoCacheOption = False,
    cache_ttl: CacheTtlOption = None,
    cache_max_size: CacheMaxSizeOption = None,
    no_rate_limit: NoRateLimitOption = False,
    rate_limit: RateLimitOption = None,
    rate_limit_interval: RateLimitIntervalOption = None,
    no_retry: NoRetryOption = False,
    retry_max_attempts: RetryMaxAttemptsOption = None,
    retry_initial_delay: RetryInitialDelayOption = None,
):
    """Perform a structured search."""
    # An omitted --country is reported by validation together with any other issue
    arguments = _drop_unset({
        "country": country, "format": format, "amenity": amenity, "street": street,
        "city": city, "county": county, "state": state, "postalcode": postal_code,
        "email": email, "limit": limit, "addressdetails": addressdetails,
        "extratags": extratags, "namedetails": namedetails, "entrances": entrances,
        "accept_language": accept_language, "countrycodes": countrycodes, "layer": layer,
        "featuretype": featuretype, "exclude_place_ids": exclude_place_ids,
        "viewbox": viewbox, "bounded": bounded, "polygon_geojson": polygon_geojson,
        "polygon_kml": polygon_kml, "polygon_svg": polygon_svg, "polygon_text": polygon_text,
        "polygon_threshold": polygon_threshold, "json_callback": json_callback,
        "dedupe": dedupe, "debug": debug,
    })
    flags = _resilience_flags(
        no_cache, cache_ttl, cache_max_size, no_rate_limit, rate_limit,
        rate_limit_interval, no_retry, retry_max_attempts, retry_initial_delay,
    )
    run_async(create_command_handler().handle_structured_search(arguments, flags))


@app.command(name="status:service")
def service_status(
    format: Annotated[str, typer.Option("--format", "-f", help="Specify the desired output format (text or json).")],
    no_cache: NoCacheOption = False,
    cache_ttl: CacheTtlOption = None,
    cache_max_size: CacheMaxSizeOption = None,
    no_rate_limit: NoRateLimitOption = False,
    rate_limit: RateLimitOption = None,
    rate_limit_interval: RateLimitIntervalOption = None,
    no_retry: NoRetryOption = False,
    retry_max_attempts: RetryMaxAttemptsOption = None,
    retry_initial_delay: RetryInitialDelayOption = None,
):
    """Report on the state of the service and database."""
    flags = _resilience_flags(
        no_cache, cache_ttl, cache_max_size, no_rate_limit, rate_limit,
        rate_limit_interval, no_retry, retry_max_attempts, retry_initial_delay,
    )
    run_async(create_command_handler().handle_service_status({"format": format}, flags))


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log debug information to stderr.")] = False,
    version: Annotated[
        Optional[bool],
        typer.Option("--version", callback=_version_callback, is_eager=True, help="Show the version and exit."),
    ] = None,
):
    """CLI tool for interacting with the Nominatim API."""
    load_configuration()
    log_level = logging.DEBUG if verbose else resolve_log_level(get_config("logging.level"))
    setup_logging(
        log_level=log_level,
        log_format=get_config("logging.format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
        log_file=get_config("logging.file"),
    )
    logger.debug("Configuration and logging initialized.")


def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app()


if __name__ == "__main__":
    cli_entry_point()
