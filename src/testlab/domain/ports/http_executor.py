# domain/ports/http_executor.py

from abc import ABC, abstractmethod

from ...schemas.tools.rest_api_caller import PreparedRequest, RestApiCallerOutput


class HttpExecutorInterface(ABC):
    """Sends one fully resolved request."""

    @abstractmethod
    async def send(self, request: PreparedRequest) -> RestApiCallerOutput:
        """Return the response, or ``success=False`` with ``error_message``.

        Implementations must not raise on transport failures.
        """
        pass
