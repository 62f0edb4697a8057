"""Command Handler: Orchestrates CLI command execution.

Receives raw arguments from the main entry point (main.py), validates them,
builds one RequestPipeline for the invocation, delegates the API call to the
GeocodingService and renders the outcome. Every handler returns the process
exit code.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, Type

from pydantic import BaseModel

from simple_nominatim.core.config_builders import build_pipeline_config
from simple_nominatim.core.response_parser import render_response
from simple_nominatim.core.services.geocoding_service import GeocodingService
from simple_nominatim.core.validation import (
    FreeFormSearchArgs, ResilienceArgs, ReverseGeocodeArgs,
    ServiceStatusArgs, StructuredSearchArgs, validate_args,
)
from simple_nominatim.domain.errors import ClassifiedError, ValidationError
from simple_nominatim.domain.interfaces.user_interface import UserInterface
from simple_nominatim.domain.models.request import ApiResponse, PipelineConfig
from simple_nominatim.infrastructure.resilience.request_pipeline import RequestPipeline

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_FAILURE = 1

PipelineFactory = Callable[[PipelineConfig], RequestPipeline]
Operation = Callable[[GeocodingService, Any], Awaitable[ApiResponse]]


class CommandHandler:
    """Handles incoming commands and delegates to the geocoding service."""

    def __init__(self, ui: UserInterface, pipeline_factory: PipelineFactory):
        """Initializes the CommandHandler.

        Args:
            ui: Where results and errors are displayed.
            pipeline_factory: Builds a fresh RequestPipeline from a PipelineConfig.
        """
        self.ui = ui
        self.pipeline_factory = pipeline_factory

    async def handle_reverse_geocode(self, arguments: Dict[str, Any], flags: Dict[str, Any]) -> int:
        """Handles the 'reverse:geocode' command."""
        return await self._handle(
            "reverse:geocode", ReverseGeocodeArgs, arguments, flags, GeocodingService.reverse_geocode,
        )

    async def handle_free_form_search(self, arguments: Dict[str, Any], flags: Dict[str, Any]) -> int:
        """Handles the 'search:free-form' command."""
        return await self._handle(
            "search:free-form", FreeFormSearchArgs, arguments, flags, GeocodingService.free_form_search,
        )

    async def handle_structured_search(self, arguments: Dict[str, Any], flags: Dict[str, Any]) -> int:
        """Handles the 'search:structured' command."""
        return await self._handle(
            "search:structured", StructuredSearchArgs, arguments, flags, GeocodingService.structured_search,
        )

    async def handle_service_status(self, arguments: Dict[str, Any], flags: Dict[str, Any]) -> int:
        """Handles the 'status:service' command."""
        return await self._handle(
            "status:service", ServiceStatusArgs, arguments, flags, GeocodingService.service_status,
        )

    async def _handle(
        self,
        command: str,
        schema: Type[BaseModel],
        arguments: Dict[str, Any],
        flags: Dict[str, Any],
        operation: Operation,
    ) -> int:
        logger.info(f"Handling '{command}' command")
        try:
            args = validate_args(schema, arguments)
            resilience = validate_args(ResilienceArgs, flags)
            config = build_pipeline_config(resilience)
        except ValidationError as e:
            logger.info(f"Rejected '{command}' arguments: {e.message}")
            self.ui.display_validation_errors(e.issues)
            return EXIT_FAILURE

        async with self.pipeline_factory(config) as pipeline:
            try:
                response = await operation(GeocodingService(pipeline), args)
            except ClassifiedError as e:
                logger.info(f"'{command}' failed: {e!r}")
                self.ui.display_error(f"Ups! Something went wrong... {e.message}")
                return EXIT_FAILURE

        self.ui.display_output(render_response(response, args.format))
        return EXIT_SUCCESS
