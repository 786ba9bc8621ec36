import asyncio
import json

import httpx
import pytest
import respx

from docbridge.client.dws import (
    CREDIT_USAGE_HEADER,
    REMAINING_CREDITS_HEADER,
    DwsClient,
    UnconfiguredClient,
    extract_error_message,
    parse_credit_header,
)
from docbridge.config import DEFAULT_API_BASE, VERSION
from docbridge.errors import ApiError, ConfigError, RequestTimeoutError
from docbridge.models import JsonBody, MultipartBody, MultipartFile

BUILD_URL = f"{DEFAULT_API_BASE}/build"


class TestDwsClientRequest:
    @pytest.mark.asyncio
    @respx.mock
    async def test_sends_auth_and_user_agent(self) -> "None":
        route = respx.post(BUILD_URL).mock(return_value=httpx.Response(200, content=b"ok"))

        client = DwsClient(api_key="test-key")
        await client.post("build", JsonBody({"parts": []}))
        await client.close()

        request = route.calls.last.request
        assert request.headers["Authorization"] == "Bearer test-key"
        assert request.headers["User-Agent"] == f"docbridge/{VERSION}"

    @pytest.mark.asyncio
    @respx.mock
    async def test_json_body_is_sent_as_json(self) -> "None":
        route = respx.post(BUILD_URL).mock(return_value=httpx.Response(200, content=b"ok"))
        instructions = {"parts": [{"file": "https://example.com/a.pdf"}]}

        client = DwsClient(api_key="k")
        await client.post("build", JsonBody(instructions))

        request = route.calls.last.request
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == instructions

    @pytest.mark.asyncio
    @respx.mock
    async def test_multipart_body_is_sent_as_form_data(self) -> "None":
        route = respx.post(BUILD_URL).mock(return_value=httpx.Response(200, content=b"ok"))
        body = MultipartBody(
            fields={"instructions": '{"parts": [{"file": "doc_pdf"}]}'},
            files=(MultipartFile(field="doc_pdf", filename="doc.pdf", content=b"%PDF-1.0"),),
        )

        client = DwsClient(api_key="k")
        await client.post("build", body)

        request = route.calls.last.request
        assert request.headers["Content-Type"].startswith("multipart/form-data")
        content = request.content
        assert b'name="instructions"' in content
        assert b'name="doc_pdf"; filename="doc.pdf"' in content
        assert b"%PDF-1.0" in content

    @pytest.mark.asyncio
    @respx.mock
    async def test_uses_configured_base_url(self) -> "None":
        route = respx.post("https://dws.internal.example/sign").mock(
            return_value=httpx.Response(200, content=b"ok")
        )
        client = DwsClient(api_key="k", base_url="https://dws.internal.example/")
        await client.post("sign", JsonBody({}))
        assert route.called


class TestDwsClientResponse:
    @pytest.mark.asyncio
    @respx.mock
    async def test_extracts_credit_headers(self) -> "None":
        respx.post(BUILD_URL).mock(
            return_value=httpx.Response(
                200,
                content=b"pdf",
                headers={CREDIT_USAGE_HEADER: "1.5", REMAINING_CREDITS_HEADER: "998.5"},
            )
        )
        response = await DwsClient(api_key="k").post("build", JsonBody({}))
        assert response.credits_used == 1.5
        assert response.credits_remaining == 998.5

    @pytest.mark.asyncio
    @respx.mock
    async def test_missing_credit_headers(self) -> "None":
        respx.post(BUILD_URL).mock(return_value=httpx.Response(200, content=b"pdf"))
        response = await DwsClient(api_key="k").post("build", JsonBody({}))
        assert response.credits_used is None
        assert response.credits_remaining is None

    @pytest.mark.asyncio
    @respx.mock
    async def test_binary_response_is_bytes(self) -> "None":
        respx.post(BUILD_URL).mock(
            return_value=httpx.Response(
                200, content=b"%PDF\x00\x01", headers={"content-type": "application/pdf"}
            )
        )
        response = await DwsClient(api_key="k").post("build", JsonBody({}))
        assert response.data == b"%PDF\x00\x01"

    @pytest.mark.asyncio
    @respx.mock
    async def test_json_response_is_text(self) -> "None":
        respx.post(BUILD_URL).mock(return_value=httpx.Response(200, json={"pages": []}))
        response = await DwsClient(api_key="k").post("build", JsonBody({}))
        assert isinstance(response.data, str)
        assert json.loads(response.data) == {"pages": []}


class TestDwsClientErrors:
    @pytest.mark.asyncio
    @respx.mock
    async def test_unauthorized(self) -> "None":
        respx.post(BUILD_URL).mock(
            return_value=httpx.Response(401, json={"message": "Invalid API key"})
        )
        with pytest.raises(ApiError) as exc_info:
            await DwsClient(api_key="bad").post("build", JsonBody({}))
        assert exc_info.value.status == 401
        assert exc_info.value.message == "Invalid API key"

    @pytest.mark.asyncio
    @respx.mock
    async def test_prefers_details_and_keeps_cost(self) -> "None":
        respx.post(BUILD_URL).mock(
            return_value=httpx.Response(
                402,
                json={"message": "Payment required", "details": "Out of credits"},
                headers={CREDIT_USAGE_HEADER: "0.5"},
            )
        )
        with pytest.raises(ApiError) as exc_info:
            await DwsClient(api_key="k").post("build", JsonBody({}))
        assert exc_info.value.status == 402
        assert exc_info.value.message == "Out of credits"
        assert exc_info.value.credits_used == 0.5
        assert exc_info.value.details["message"] == "Payment required"

    @pytest.mark.asyncio
    @respx.mock
    async def test_server_error_with_plain_body(self) -> "None":
        respx.post(BUILD_URL).mock(
            return_value=httpx.Response(
                500, text="Internal failure", headers={"content-type": "application/json"}
            )
        )
        with pytest.raises(ApiError) as exc_info:
            await DwsClient(api_key="k").post("build", JsonBody({}))
        assert exc_info.value.status == 500
        assert exc_info.value.message == "Internal failure"

    @pytest.mark.asyncio
    @respx.mock
    async def test_timeout_raises_timeout_error(self) -> "None":
        respx.post(BUILD_URL).mock(side_effect=httpx.ReadTimeout("timed out"))
        with pytest.raises(RequestTimeoutError) as exc_info:
            await DwsClient(api_key="k").post("build", JsonBody({}), timeout=5)
        assert exc_info.value.timeout_seconds == 5

    @pytest.mark.asyncio
    @respx.mock
    async def test_deadline_cancels_slow_request(self) -> "None":
        async def slow(request: "httpx.Request") -> "httpx.Response":
            await asyncio.sleep(5)
            return httpx.Response(200, content=b"late")

        respx.post(BUILD_URL).mock(side_effect=slow)
        with pytest.raises(RequestTimeoutError):
            await DwsClient(api_key="k").post("build", JsonBody({}), timeout=0.05)

    @pytest.mark.asyncio
    @respx.mock
    async def test_connection_error_is_api_error(self) -> "None":
        respx.post(BUILD_URL).mock(side_effect=httpx.ConnectError("refused"))
        with pytest.raises(ApiError) as exc_info:
            await DwsClient(api_key="k").post("build", JsonBody({}))
        assert exc_info.value.status == 0


class TestUnconfiguredClient:
    @pytest.mark.asyncio
    async def test_post_raises_config_error(self) -> "None":
        with pytest.raises(ConfigError, match="NUTRIENT_API_KEY"):
            await UnconfiguredClient().post("build", JsonBody({}))


class TestParseCreditHeader:
    def test_values(self) -> "None":
        assert parse_credit_header("2") == 2.0
        assert parse_credit_header("0") == 0.0
        assert parse_credit_header(None) is None
        assert parse_credit_header("") is None
        assert parse_credit_header("abc") is None
        assert parse_credit_header("nan") is None


class TestExtractErrorMessage:
    def test_falls_back_to_status(self) -> "None":
        assert extract_error_message(503, b"") == ("HTTP 503", None)

    def test_message_field(self) -> "None":
        message, details = extract_error_message(400, '{"message": "bad"}')
        assert message == "bad"
        assert details == {"message": "bad"}

    def test_json_without_known_fields(self) -> "None":
        message, _ = extract_error_message(400, '{"error": "x"}')
        assert message == "HTTP 400"
