import json

import pytest
from unittest.mock import MagicMock

from simple_nominatim.core.command_handler import EXIT_FAILURE, EXIT_SUCCESS, CommandHandler
from simple_nominatim.domain.errors import TransportError
from simple_nominatim.domain.interfaces.user_interface import UserInterface
from simple_nominatim.domain.models.request import ApiResponse
from simple_nominatim.infrastructure.config.settings import set_config_for_testing
from simple_nominatim.infrastructure.resilience.request_pipeline import RequestPipeline

PARIS = ApiResponse(body=json.dumps({"place_id": 123, "display_name": "Paris, France"}, indent=2))


@pytest.fixture
def mock_ui():
    return MagicMock(spec=UserInterface)


@pytest.fixture
def transport(transport_factory):
    return transport_factory(PARIS)


@pytest.fixture
def built_configs():
    return []


@pytest.fixture
def command_handler(mock_ui, transport, built_configs, fake_clock):
    """Fixture to create CommandHandler whose pipelines share one scripted transport."""
    def pipeline_factory(config):
        built_configs.append(config)
        return RequestPipeline(transport=transport, config=config, clock=fake_clock, sleep=fake_clock.sleep)

    return CommandHandler(ui=mock_ui, pipeline_factory=pipeline_factory)


@pytest.mark.asyncio
async def test_handle_reverse_geocode(command_handler: CommandHandler, transport, mock_ui: MagicMock):
    exit_code = await command_handler.handle_reverse_geocode(
        {"latitude": "48.85", "longitude": "2.29", "format": "json", "zoom": 10, "accept_language": "fr"},
        {},
    )

    assert exit_code == EXIT_SUCCESS
    sent = transport.sent[0]
    assert sent.path == "/reverse"
    assert sent.params_dict() == {
        "lat": "48.85", "lon": "2.29", "format": "json", "accept-language": "fr", "zoom": "10",
    }
    mock_ui.display_output.assert_called_once_with('{"place_id":123,"display_name":"Paris, France"}')
    mock_ui.display_error.assert_not_called()
    assert transport.closed


@pytest.mark.asyncio
async def test_handle_free_form_search(command_handler: CommandHandler, transport):
    exit_code = await command_handler.handle_free_form_search(
        {"query": "tour eiffel", "format": "jsonv2", "limit": 5, "featuretype": "city", "dedupe": 0},
        {},
    )

    assert exit_code == EXIT_SUCCESS
    sent = transport.sent[0]
    assert sent.path == "/search"
    assert sent.params_dict() == {
        "q": "tour eiffel", "format": "jsonv2", "limit": "5", "featureType": "city", "dedupe": "0",
    }


@pytest.mark.asyncio
async def test_handle_structured_search(command_handler: CommandHandler, transport):
    exit_code = await command_handler.handle_structured_search(
        {"country": "France", "city": "Paris", "postalcode": "75007", "format": "geojson"},
        {},
    )

    assert exit_code == EXIT_SUCCESS
    assert transport.sent[0].params_dict() == {
        "city": "Paris", "country": "France", "postalcode": "75007", "format": "geojson",
    }


@pytest.mark.asyncio
async def test_handle_service_status_text(transport_factory, mock_ui: MagicMock, fake_clock):
    transport = transport_factory(ApiResponse(body="OK", content_type="text/plain"))
    handler = CommandHandler(
        ui=mock_ui,
        pipeline_factory=lambda config: RequestPipeline(transport, config, clock=fake_clock, sleep=fake_clock.sleep),
    )

    assert await handler.handle_service_status({"format": "text"}, {}) == EXIT_SUCCESS
    assert transport.sent[0].path == "/status"
    mock_ui.display_output.assert_called_once_with("OK")


@pytest.mark.asyncio
async def test_validation_error_skips_network(command_handler: CommandHandler, transport, mock_ui: MagicMock):
    exit_code = await command_handler.handle_reverse_geocode(
        {"latitude": "91", "longitude": "2.29", "format": "json"}, {},
    )

    assert exit_code == EXIT_FAILURE
    assert transport.call_count == 0
    mock_ui.display_validation_errors.assert_called_once_with(
        [("latitude", "Latitude must be between -90 and 90")]
    )
    mock_ui.display_output.assert_not_called()


@pytest.mark.asyncio
async def test_invalid_resilience_flag_is_a_validation_error(command_handler: CommandHandler, transport, mock_ui):
    exit_code = await command_handler.handle_service_status({"format": "json"}, {"retry_max_attempts": 0})

    assert exit_code == EXIT_FAILURE
    assert transport.call_count == 0
    field, _ = mock_ui.display_validation_errors.call_args.args[0][0]
    assert field == "retry_max_attempts"


@pytest.mark.asyncio
async def test_invalid_configured_value_is_a_validation_error(
    command_handler: CommandHandler, transport, mock_ui, built_configs,
):
    set_config_for_testing({"rate_limit.limit": 0})

    exit_code = await command_handler.handle_service_status({"format": "json"}, {})

    assert exit_code == EXIT_FAILURE
    assert transport.call_count == 0
    assert built_configs == []
    field, _ = mock_ui.display_validation_errors.call_args.args[0][0]
    assert field == "rate_limit.limit"


@pytest.mark.asyncio
async def test_api_error_is_displayed(transport_factory, mock_ui: MagicMock, fake_clock):
    transport = transport_factory(TransportError.from_status(404, "HTTP 404: Not Found"))
    handler = CommandHandler(
        ui=mock_ui,
        pipeline_factory=lambda config: RequestPipeline(transport, config, clock=fake_clock, sleep=fake_clock.sleep),
    )

    exit_code = await handler.handle_free_form_search({"query": "nowhere", "format": "json"}, {})

    assert exit_code == EXIT_FAILURE
    mock_ui.display_error.assert_called_once_with("Ups! Something went wrong... HTTP 404: Not Found")
    mock_ui.display_output.assert_not_called()
    assert transport.closed


@pytest.mark.asyncio
async def test_flags_reach_pipeline_config(command_handler: CommandHandler, built_configs):
    await command_handler.handle_service_status(
        {"format": "json"},
        {"no_cache": True, "rate_limit": 4, "retry_max_attempts": 2, "retry_initial_delay": 10},
    )

    config = built_configs[0]
    assert config.cache.enabled is False
    assert config.rate_limit.limit == 4
    assert config.retry.max_attempts == 2
    assert config.retry.initial_delay_ms == 10
