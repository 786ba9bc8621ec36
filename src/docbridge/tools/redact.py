import json
from typing import Any

from docbridge.client.dws import ANALYSIS_TIMEOUT_SECONDS
from docbridge.errors import FileError, InvalidParameterError
from docbridge.files import (
    add_reference,
    assert_different,
    build_reference,
    derive_output_path,
    write_output,
)
from docbridge.instructions import (
    AiRedactDocument,
    AiRedactRequest,
    ApplyRedactionsAction,
    BuildInstructions,
    CreateRedactionsAction,
    Part,
    PdfOutput,
    RedactionStrategyOptions,
    to_payload,
)
from docbridge.models import FileReference, MultipartBody, MultipartFile, ToolResult
from docbridge.request_body import build_request_body
from docbridge.tools.base import Tool, ToolContext, choice, record_usage, require

STRATEGIES = ("preset", "regex", "text")

REDACTION_PRESETS = (
    "credit-card-number",
    "date",
    "email-address",
    "international-phone-number",
    "ipv4",
    "ipv6",
    "mac-address",
    "north-american-phone-number",
    "social-security-number",
    "time",
    "url",
    "us-zip-code",
    "vin",
)

DEFAULT_AI_CRITERIA = "All personally identifiable information"


def strategy_options(strategy: "str", args: "dict[str, Any]") -> "RedactionStrategyOptions":
    """
    builds the createRedactions options for a strategy, checking the
    strategy's own required value is present.
    """
    include_annotations = args.get("include_annotations")
    options = RedactionStrategyOptions(
        include_annotations=True if include_annotations is None else bool(include_annotations),
        start=args.get("start_page"),
        limit=args.get("page_limit"),
    )
    value = args.get(strategy)
    if not value:
        raise InvalidParameterError(f'{strategy} is required when strategy is "{strategy}"')

    case_sensitive = args.get("case_sensitive")
    if strategy == "preset":
        if value not in REDACTION_PRESETS:
            raise InvalidParameterError(f"unknown redaction preset {value!r}")
        options.preset = value
    elif strategy == "regex":
        options.regex = value
        options.case_sensitive = True if case_sensitive is None else bool(case_sensitive)
    else:
        options.text = value
        options.case_sensitive = False if case_sensitive is None else bool(case_sensitive)
    return options


class Redact(Tool):
    name = "nutrient_redact"
    label = "Redact"
    description = (
        "Redact content from a PDF using pattern matching. Supports three strategies: "
        '"preset" (built-in patterns like SSN, email, credit card), '
        '"regex" (custom regular expression), or '
        '"text" (exact text match). Permanently removes matched content.'
    )
    parameters = {
        "type": "object",
        "required": ["file_path", "strategy"],
        "properties": {
            "file_path": {"type": "string", "description": "Path or URL of the input PDF"},
            "output_path": {
                "type": "string",
                "description": "Path for the redacted PDF. Derived from the input name with a -redacted suffix when omitted",
            },
            "strategy": {
                "type": "string",
                "enum": list(STRATEGIES),
                "description": "Redaction strategy",
            },
            "preset": {
                "type": "string",
                "enum": list(REDACTION_PRESETS),
                "description": 'Preset pattern (required when strategy="preset")',
            },
            "regex": {
                "type": "string",
                "description": 'Regex pattern (required when strategy="regex")',
            },
            "text": {
                "type": "string",
                "description": 'Text to find and redact (required when strategy="text")',
            },
            "case_sensitive": {
                "type": "boolean",
                "description": "Case sensitivity (default: true for regex, false for text)",
            },
            "include_annotations": {
                "type": "boolean",
                "default": True,
                "description": "Also redact matching annotation content",
            },
            "start_page": {"type": "integer", "description": "Start page index (0-based)"},
            "page_limit": {
                "type": "integer",
                "description": "Number of pages to search from start_page",
            },
        },
    }

    async def execute(self, args: "dict[str, Any]", ctx: "ToolContext") -> "ToolResult":
        file_path = require(args, "file_path")
        strategy = choice(args, "strategy", STRATEGIES)
        options = strategy_options(strategy, args)
        output_path = args.get("output_path") or derive_output_path(
            file_path, "pdf", "-redacted"
        )

        assert_different(file_path, output_path, ctx.sandbox_dir)

        refs: "dict[str, FileReference]" = {}
        ref = add_reference(refs, build_reference(file_path, ctx.sandbox_dir))

        # find matches first, then burn them into the document
        instructions = BuildInstructions(
            parts=[Part(file=ref.pointer)],
            actions=[
                CreateRedactionsAction(strategy=strategy, strategy_options=options),
                ApplyRedactionsAction(),
            ],
            output=PdfOutput(),
        ).to_dict()
        response = await ctx.client.post("build", build_request_body(instructions, refs))

        written = write_output(response.data, output_path, ctx.sandbox_dir)
        record_usage(ctx, "redact", response)
        return ToolResult(
            success=True, output=f"Redacted: {written}", credits_used=response.credits_used
        )


class AiRedact(Tool):
    name = "nutrient_ai_redact"
    label = "AI Redact"
    description = (
        "Redact sensitive information from a document using AI analysis. "
        "Detects and permanently removes PII based on natural-language criteria "
        '(e.g. "Names and phone numbers", "Protected health information"). '
        "Defaults to all personally identifiable information. "
        "AI analysis typically takes 60-120 seconds."
    )
    parameters = {
        "type": "object",
        "required": ["file_path", "output_path"],
        "properties": {
            "file_path": {"type": "string", "description": "Path to the input document"},
            "output_path": {"type": "string", "description": "Path for the redacted output"},
            "criteria": {
                "type": "string",
                "default": DEFAULT_AI_CRITERIA,
                "description": (
                    'What to redact. Examples: "Names, email addresses, and phone numbers", '
                    '"Protected health information (PHI)", '
                    '"Social security numbers and credit card numbers"'
                ),
            },
        },
    }

    async def execute(self, args: "dict[str, Any]", ctx: "ToolContext") -> "ToolResult":
        file_path = require(args, "file_path")
        output_path = require(args, "output_path")
        criteria = args.get("criteria") or DEFAULT_AI_CRITERIA

        assert_different(file_path, output_path, ctx.sandbox_dir)

        ref = build_reference(file_path, ctx.sandbox_dir)
        if ref.local is None:
            raise FileError("AI redaction requires a local file, not a URL")

        # /ai/redact has its own two-field shape, not the /build instructions
        request = AiRedactRequest(
            documents=[AiRedactDocument(document_id="file1")], criteria=criteria
        )
        body = MultipartBody(
            fields={"data": json.dumps(to_payload(request))},
            files=(MultipartFile(field="file1", filename=ref.name, content=ref.local.content),),
        )
        response = await ctx.client.post(
            "ai/redact", body, timeout=ANALYSIS_TIMEOUT_SECONDS
        )

        written = write_output(response.data, output_path, ctx.sandbox_dir)
        record_usage(ctx, "ai-redact", response)
        return ToolResult(
            success=True,
            output=f"AI redaction complete: {written}",
            credits_used=response.credits_used,
        )
