"""Turns an API response into the text written to stdout."""

import json
import logging

from simple_nominatim.domain.models.common import JSON_FORMATS, ProcessedOutput
from simple_nominatim.domain.models.request import ApiResponse

logger = logging.getLogger(__name__)


def render_response(response: ApiResponse, output_format: str) -> ProcessedOutput:
    """JSON-family payloads are re-serialized compactly; anything else
    (xml, status text, JSONP-wrapped output) is returned verbatim.
    """
    body = response.body.rstrip("\n")
    output_format = getattr(output_format, "value", output_format)
    if output_format not in JSON_FORMATS:
        return ProcessedOutput(body)
    try:
        data = response.json()
    except ValueError:
        logger.debug("Response body is not plain JSON, printing it verbatim.")
        return ProcessedOutput(body)
    return ProcessedOutput(json.dumps(data, ensure_ascii=False, separators=(",", ":")))
