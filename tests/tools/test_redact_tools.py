import json
import os

import pytest

from docbridge.client.dws import ANALYSIS_TIMEOUT_SECONDS
from docbridge.models import MultipartBody
from docbridge.tools.redact import DEFAULT_AI_CRITERIA, AiRedact, Redact


def _actions(body: "MultipartBody") -> "list":
    return json.loads(body.fields["instructions"])["actions"]


class TestRedact:
    @pytest.mark.asyncio
    async def test_preset_strategy(
        self, ctx: "object", transport: "object", sandbox: "str", make_file: "object"
    ) -> "None":
        make_file("doc.pdf")
        result = await Redact().run(
            {"file_path": "doc.pdf", "strategy": "preset", "preset": "email-address"}, ctx
        )

        out = os.path.join(sandbox, "doc-redacted.pdf")
        assert result.success is True
        assert result.output == f"Redacted: {out}"
        assert os.path.exists(out)

        endpoint, body, _ = transport.last_call
        assert endpoint == "build"
        assert _actions(body) == [
            {
                "strategy": "preset",
                "strategyOptions": {"includeAnnotations": True, "preset": "email-address"},
                "type": "createRedactions",
            },
            {"type": "applyRedactions"},
        ]
        assert ctx.ledger.entries()[0].operation == "redact"

    @pytest.mark.asyncio
    async def test_regex_defaults_to_case_sensitive(
        self, ctx: "object", transport: "object", make_file: "object"
    ) -> "None":
        make_file("doc.pdf")
        await Redact().run(
            {
                "file_path": "doc.pdf",
                "strategy": "regex",
                "regex": r"\d{3}-\d{2}-\d{4}",
                "start_page": 1,
                "page_limit": 2,
            },
            ctx,
        )

        _, body, _ = transport.last_call
        options = _actions(body)[0]["strategyOptions"]
        assert options == {
            "includeAnnotations": True,
            "start": 1,
            "limit": 2,
            "regex": r"\d{3}-\d{2}-\d{4}",
            "caseSensitive": True,
        }

    @pytest.mark.asyncio
    async def test_text_defaults_to_case_insensitive(
        self, ctx: "object", transport: "object", make_file: "object"
    ) -> "None":
        make_file("doc.pdf")
        await Redact().run(
            {
                "file_path": "doc.pdf",
                "strategy": "text",
                "text": "Jane Doe",
                "include_annotations": False,
            },
            ctx,
        )

        _, body, _ = transport.last_call
        options = _actions(body)[0]["strategyOptions"]
        assert options == {
            "includeAnnotations": False,
            "text": "Jane Doe",
            "caseSensitive": False,
        }

    @pytest.mark.asyncio
    @pytest.mark.parametrize("strategy", ["preset", "regex", "text"])
    async def test_strategy_value_is_required(
        self, ctx: "object", transport: "object", make_file: "object", strategy: "str"
    ) -> "None":
        make_file("doc.pdf")
        result = await Redact().run({"file_path": "doc.pdf", "strategy": strategy}, ctx)

        assert result.success is False
        assert result.error == (
            f'Invalid parameters: {strategy} is required when strategy is "{strategy}"'
        )
        assert transport.calls == []

    @pytest.mark.asyncio
    async def test_unknown_preset(self, ctx: "object", make_file: "object") -> "None":
        make_file("doc.pdf")
        result = await Redact().run(
            {"file_path": "doc.pdf", "strategy": "preset", "preset": "passport"}, ctx
        )
        assert result.success is False
        assert "unknown redaction preset" in result.error


class TestAiRedact:
    @pytest.mark.asyncio
    async def test_sends_own_multipart_shape(
        self, ctx: "object", transport: "object", sandbox: "str", make_file: "object"
    ) -> "None":
        make_file("contract.pdf", b"contract")
        result = await AiRedact().run(
            {
                "file_path": "contract.pdf",
                "output_path": "clean.pdf",
                "criteria": "Names and phone numbers",
            },
            ctx,
        )

        out = os.path.join(sandbox, "clean.pdf")
        assert result.success is True
        assert result.output == f"AI redaction complete: {out}"

        endpoint, body, timeout = transport.last_call
        assert endpoint == "ai/redact"
        assert timeout == ANALYSIS_TIMEOUT_SECONDS
        assert isinstance(body, MultipartBody)
        assert json.loads(body.fields["data"]) == {
            "documents": [{"documentId": "file1"}],
            "criteria": "Names and phone numbers",
        }
        assert [(f.field, f.filename, f.content) for f in body.files] == [
            ("file1", "contract.pdf", b"contract")
        ]
        assert ctx.ledger.entries()[0].operation == "ai-redact"

    @pytest.mark.asyncio
    async def test_default_criteria(
        self, ctx: "object", transport: "object", make_file: "object"
    ) -> "None":
        make_file("a.pdf")
        await AiRedact().run({"file_path": "a.pdf", "output_path": "b.pdf"}, ctx)
        _, body, _ = transport.last_call
        assert json.loads(body.fields["data"])["criteria"] == DEFAULT_AI_CRITERIA

    @pytest.mark.asyncio
    async def test_rejects_url_input(self, ctx: "object", transport: "object") -> "None":
        result = await AiRedact().run(
            {"file_path": "https://example.com/a.pdf", "output_path": "b.pdf"}, ctx
        )
        assert result.success is False
        assert result.error == "File error: AI redaction requires a local file, not a URL"
        assert transport.calls == []
