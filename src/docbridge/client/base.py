from typing import Protocol

from docbridge.models import ApiResponse, RequestBody


class Transport(Protocol):
    """
    Transport stands as the common protocol for sending a request
    body to a document service endpoint.

    Implementations translate non-success responses into ApiError
    and expired deadlines into RequestTimeoutError.
    """

    async def post(
        self,
        endpoint: "str",
        body: "RequestBody",
        timeout: "float | None" = None,
    ) -> "ApiResponse": ...

    async def close(self) -> "None": ...
