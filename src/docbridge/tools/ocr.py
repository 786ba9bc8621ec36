from typing import Any

from docbridge.files import add_reference, assert_different, build_reference, write_output
from docbridge.instructions import BuildInstructions, OcrAction, Part, PdfOutput
from docbridge.models import FileReference, ToolResult
from docbridge.request_body import build_request_body
from docbridge.tools.base import Tool, ToolContext, record_usage, require


class Ocr(Tool):
    name = "nutrient_ocr"
    label = "OCR"
    description = (
        "Apply OCR to a scanned PDF or image, producing a searchable PDF with selectable text."
    )
    parameters = {
        "type": "object",
        "required": ["file_path", "output_path", "language"],
        "properties": {
            "file_path": {"type": "string", "description": "Path or URL of the input PDF or image"},
            "output_path": {"type": "string", "description": "Path for the output PDF"},
            "language": {
                "type": "string",
                "description": "OCR language (e.g. 'english', 'german', 'french')",
            },
        },
    }

    async def execute(self, args: "dict[str, Any]", ctx: "ToolContext") -> "ToolResult":
        file_path = require(args, "file_path")
        output_path = require(args, "output_path")
        language = require(args, "language")

        assert_different(file_path, output_path, ctx.sandbox_dir)

        refs: "dict[str, FileReference]" = {}
        ref = add_reference(refs, build_reference(file_path, ctx.sandbox_dir))

        instructions = BuildInstructions(
            parts=[Part(file=ref.pointer)],
            actions=[OcrAction(language=language)],
            output=PdfOutput(),
        ).to_dict()
        response = await ctx.client.post("build", build_request_body(instructions, refs))

        written = write_output(response.data, output_path, ctx.sandbox_dir)
        record_usage(ctx, "ocr", response)
        return ToolResult(
            success=True,
            output=f"OCR PDF created at {written} (language: {language})",
            credits_used=response.credits_used,
        )
