import io

import pytest
from rich.console import Console

from simple_nominatim.domain.models.common import ProcessedOutput
from simple_nominatim.infrastructure.cli.display import ConsoleDisplay


@pytest.fixture
def stdout():
    return io.StringIO()


@pytest.fixture
def stderr():
    return io.StringIO()


@pytest.fixture
def console_display(stdout: io.StringIO, stderr: io.StringIO):
    """Fixture to create a ConsoleDisplay writing to in-memory streams."""
    return ConsoleDisplay(
        console=Console(file=stdout, width=40, highlight=False),
        error_console=Console(file=stderr, width=40, highlight=False),
    )


def test_display_output_is_verbatim(console_display: ConsoleDisplay, stdout, stderr):
    """Markup, emoji codes and long lines pass through untouched."""
    payload = '{"display_name":"[bold]Paris[/bold] :smile:","place_id":123,"padding":"' + "x" * 80 + '"}'
    console_display.display_output(ProcessedOutput(payload))

    assert stdout.getvalue() == payload + "\n"
    assert stderr.getvalue() == ""


def test_display_error(console_display: ConsoleDisplay, stdout, stderr):
    console_display.display_error("Ups! Something went wrong... HTTP 404: [not found]")
    assert stderr.getvalue() == "Error: Ups! Something went wrong... HTTP 404: [not found]\n"
    assert stdout.getvalue() == ""


def test_display_validation_errors(console_display: ConsoleDisplay, stdout, stderr):
    console_display.display_validation_errors([
        ("latitude", "Latitude must be between -90 and 90"),
        ("limit", "Input should be less than or equal to 40"),
    ])

    assert stderr.getvalue().splitlines() == [
        "Validation error:",
        "  - latitude: Latitude must be between -90 and 90",
        "  - limit: Input should be less than or equal to 40",
    ]
    assert stdout.getvalue() == ""
