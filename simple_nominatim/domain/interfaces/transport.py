"""Interface for the HTTP transport that performs a single request attempt."""

import abc

from ..models.request import ApiResponse, RequestDescriptor


class Transport(abc.ABC):
    """Abstract Base Class for sending one request to the upstream API."""

    @abc.abstractmethod
    async def send(self, descriptor: RequestDescriptor) -> ApiResponse:
        """Performs exactly one request attempt.

        Args:
            descriptor: The request to send.

        Returns:
            The successful response.

        Raises:
            ClassifiedError: If the attempt failed. The error states whether
                it is worth retrying.
        """
        pass

    async def close(self) -> None:
        """Releases any underlying connections."""
        pass
