import asyncio
import json
import math

import httpx
import structlog

from docbridge.config import DEFAULT_API_BASE, VERSION
from docbridge.errors import ApiError, ConfigError, RequestTimeoutError
from docbridge.models import ApiResponse, JsonBody, MultipartBody, RequestBody

logger = structlog.get_logger()

CREDIT_USAGE_HEADER = "x-pspdfkit-credit-usage"
REMAINING_CREDITS_HEADER = "x-pspdfkit-remaining-credits"

# timeout tiers, in seconds
STANDARD_TIMEOUT_SECONDS = 120.0
ANALYSIS_TIMEOUT_SECONDS = 300.0


def parse_credit_header(value: "str | None") -> "float | None":
    """
    parses a billing header into a float. Missing, empty or
    non-numeric values yield None.
    """
    if value is None or not value.strip():
        return None
    try:
        number = float(value)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def extract_error_message(status: "int", data: "bytes | str") -> "tuple[str, object]":
    """
    picks the most useful message out of an error body: the JSON
    "details" field, then "message", then the raw body text.
    """
    fallback = f"HTTP {status}"
    text = data if isinstance(data, str) else data.decode("utf-8", errors="replace")
    if not text:
        return fallback, None

    try:
        parsed = json.loads(text)
    except ValueError:
        return text, None

    if isinstance(parsed, dict):
        for key in ("details", "message"):
            value = parsed.get(key)
            if value is not None:
                return value if isinstance(value, str) else json.dumps(value), parsed
        return fallback, parsed
    return text, parsed


class DwsClient:
    """
    DwsClient implements the Transport protocol for the Nutrient DWS
    API. Every request carries the bearer key and is bounded by a
    total deadline; when it expires the in-flight request is
    cancelled and RequestTimeoutError is raised.
    """

    def __init__(
        self,
        api_key: "str",
        base_url: "str" = DEFAULT_API_BASE,
        default_timeout: "float" = STANDARD_TIMEOUT_SECONDS,
    ) -> "None":
        self._base_url = base_url.rstrip("/")
        self._default_timeout = default_timeout
        self._client: "httpx.AsyncClient" = httpx.AsyncClient(
            headers={
                "Authorization": f"Bearer {api_key}",
                "User-Agent": f"docbridge/{VERSION}",
            },
        )

    async def close(self) -> "None":
        """
        closes the underlying HTTP client.
        """
        await self._client.aclose()

    async def post(
        self,
        endpoint: "str",
        body: "RequestBody",
        timeout: "float | None" = None,
    ) -> "ApiResponse":
        url = f"{self._base_url}/{endpoint}"
        deadline = timeout or self._default_timeout
        logger.debug(
            "api_request",
            endpoint=endpoint,
            body_kind=type(body).__name__,
            timeout=deadline,
        )

        try:
            resp = await asyncio.wait_for(
                self._send(url, body, deadline), timeout=deadline
            )
        except (TimeoutError, httpx.TimeoutException):
            logger.warning("api_timeout", endpoint=endpoint, timeout=deadline)
            raise RequestTimeoutError(deadline) from None
        except httpx.TransportError as e:
            raise ApiError(0, f"Request to {endpoint} failed: {e}") from e

        credits_used = parse_credit_header(resp.headers.get(CREDIT_USAGE_HEADER))
        credits_remaining = parse_credit_header(
            resp.headers.get(REMAINING_CREDITS_HEADER)
        )

        # JSON responses are handed back as text, everything else as bytes
        content_type = resp.headers.get("content-type", "")
        data: "bytes | str" = resp.text if "json" in content_type else resp.content

        logger.debug(
            "api_response",
            endpoint=endpoint,
            status=resp.status_code,
            credits_used=credits_used,
            credits_remaining=credits_remaining,
        )

        if not resp.is_success:
            message, details = extract_error_message(resp.status_code, data)
            raise ApiError(resp.status_code, message, credits_used, details)

        return ApiResponse(
            status=resp.status_code,
            data=data,
            headers=dict(resp.headers),
            credits_used=credits_used,
            credits_remaining=credits_remaining,
        )

    async def _send(
        self, url: "str", body: "RequestBody", timeout: "float"
    ) -> "httpx.Response":
        if isinstance(body, JsonBody):
            return await self._client.post(url, json=body.payload, timeout=timeout)
        if isinstance(body, MultipartBody):
            files = [
                (f.field, (f.filename, f.content, "application/octet-stream"))
                for f in body.files
            ]
            return await self._client.post(
                url, data=body.fields, files=files, timeout=timeout
            )
        raise TypeError(f"unsupported request body: {type(body).__name__}")


class UnconfiguredClient:
    """
    UnconfiguredClient stands in for DwsClient when no API key is
    set, so every tool can still be registered. The configuration
    error only surfaces when a tool actually calls the service.
    """

    async def post(
        self,
        endpoint: "str",
        body: "RequestBody",
        timeout: "float | None" = None,
    ) -> "ApiResponse":
        raise ConfigError(
            "NUTRIENT_API_KEY not configured. Set it in plugin settings or the "
            "NUTRIENT_API_KEY env var. Get a key at https://dashboard.nutrient.io/sign_up"
        )

    async def close(self) -> "None":
        pass
