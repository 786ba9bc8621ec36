from typing import Any

from docbridge.files import add_reference, build_reference
from docbridge.instructions import BuildInstructions, JsonContentOutput, Part
from docbridge.models import FileReference, ToolResult
from docbridge.request_body import build_request_body
from docbridge.tools.base import Tool, ToolContext, choice, record_usage, require

EXTRACTION_MODES = ("text", "tables", "key-values")


def normalize_language(language: "str") -> "str | list[str]":
    """
    splits a comma-separated language list ("english,german") into a
    list; a single language stays a plain string.
    """
    if "," not in language:
        return language
    return [part.strip() for part in language.split(",") if part.strip()]


def content_output(mode: "str", language: "str | list[str]") -> "JsonContentOutput":
    if mode == "tables":
        return JsonContentOutput(tables=True, language=language)
    if mode == "key-values":
        return JsonContentOutput(key_value_pairs=True, language=language)
    return JsonContentOutput(plain_text=True, language=language)


class ExtractText(Tool):
    name = "nutrient_extract_text"
    label = "Extract Text"
    description = (
        "Extract content from a document. Supports three modes: "
        '"text" for plain text, "tables" for tabular data, and '
        '"key-values" for detected key-value pairs (phone numbers, emails, dates, etc.). '
        "Returns JSON inline; no file is written."
    )
    parameters = {
        "type": "object",
        "required": ["file_path"],
        "properties": {
            "file_path": {
                "type": "string",
                "description": "Path or URL of the input document (PDF, image, DOCX, etc.)",
            },
            "mode": {
                "type": "string",
                "enum": list(EXTRACTION_MODES),
                "default": "text",
                "description": "Extraction mode",
            },
            "language": {
                "type": "string",
                "default": "english",
                "description": (
                    "OCR language(s) (default: 'english'). Use a single language "
                    "or a comma-separated list, e.g. 'english,german'."
                ),
            },
        },
    }

    async def execute(self, args: "dict[str, Any]", ctx: "ToolContext") -> "ToolResult":
        file_path = require(args, "file_path")
        mode = choice(args, "mode", EXTRACTION_MODES, default="text")
        language = normalize_language(args.get("language") or "english")

        refs: "dict[str, FileReference]" = {}
        ref = add_reference(refs, build_reference(file_path, ctx.sandbox_dir))

        instructions = BuildInstructions(
            parts=[Part(file=ref.pointer)],
            output=content_output(mode, language),
        ).to_dict()
        response = await ctx.client.post("build", build_request_body(instructions, refs))

        record_usage(ctx, f"extract-{mode}", response)

        data = response.data
        text = data if isinstance(data, str) else data.decode("utf-8", errors="replace")
        return ToolResult(success=True, output=text, credits_used=response.credits_used)
