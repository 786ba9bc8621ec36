from typing import Any

from docbridge.files import (
    add_reference,
    assert_different,
    build_reference,
    derive_output_path,
    write_output,
)
from docbridge.instructions import (
    BuildInstructions,
    ImageOutput,
    OfficeOutput,
    PageRange,
    Part,
    PdfOutput,
)
from docbridge.models import FileReference, ToolResult
from docbridge.request_body import build_request_body
from docbridge.tools.base import PAGE_RANGE_SCHEMA, Tool, ToolContext, choice, record_usage, require

IMAGE_FORMATS = ("png", "jpeg", "webp")
OFFICE_FORMATS = ("docx", "xlsx", "pptx")
PAGE_SIZES = ["A0", "A1", "A2", "A3", "A4", "A5", "A6", "A7", "A8", "Letter", "Legal"]


def _page_range(value: "Any") -> "PageRange | None":
    if not value:
        return None
    return PageRange(start=value.get("start"), end=value.get("end"))


async def _convert(
    ctx: "ToolContext",
    file_path: "str",
    output_path: "str",
    part: "Part",
    output: "Any",
    operation: "str",
) -> "tuple[str, float | None]":
    """
    shared flow of the conversion tools: send one part to /build,
    write the binary result and log the usage. Returns the written
    path and the credits used.
    """
    assert_different(file_path, output_path, ctx.sandbox_dir)

    ref = build_reference(file_path, ctx.sandbox_dir)
    refs: "dict[str, FileReference]" = {}
    add_reference(refs, ref)
    part.file = ref.pointer

    instructions = BuildInstructions(parts=[part], output=output).to_dict()
    response = await ctx.client.post("build", build_request_body(instructions, refs))

    written = write_output(response.data, output_path, ctx.sandbox_dir)
    record_usage(ctx, operation, response)
    return written, response.credits_used


class ConvertToPdf(Tool):
    name = "nutrient_convert_to_pdf"
    label = "Convert to PDF"
    description = (
        "Convert a document (DOCX, XLSX, PPTX, HTML, image) to PDF. "
        "Input may be a local path or an http(s) URL."
    )
    parameters = {
        "type": "object",
        "required": ["file_path"],
        "properties": {
            "file_path": {
                "type": "string",
                "description": "Path or URL of the input file (DOCX, XLSX, PPTX, HTML, image, or PDF)",
            },
            "output_path": {
                "type": "string",
                "description": "Path for the output PDF. Derived from the input name when omitted (report.docx -> report.pdf)",
            },
            "password": {
                "type": "string",
                "description": "Password for a protected input file",
            },
            "pages": PAGE_RANGE_SCHEMA,
            "html_layout": {
                "type": "object",
                "description": "Layout options for HTML input",
                "properties": {
                    "orientation": {"type": "string", "enum": ["portrait", "landscape"]},
                    "size": {
                        "oneOf": [
                            {"type": "string", "enum": PAGE_SIZES},
                            {
                                "type": "object",
                                "properties": {
                                    "width": {"type": "number"},
                                    "height": {"type": "number"},
                                },
                            },
                        ]
                    },
                    "margin": {
                        "type": "object",
                        "properties": {
                            "left": {"type": "number"},
                            "top": {"type": "number"},
                            "right": {"type": "number"},
                            "bottom": {"type": "number"},
                        },
                    },
                },
            },
        },
    }

    async def execute(self, args: "dict[str, Any]", ctx: "ToolContext") -> "ToolResult":
        file_path = require(args, "file_path")
        output_path = args.get("output_path") or derive_output_path(file_path, "pdf")

        part = Part(
            file=file_path,
            password=args.get("password") or None,
            pages=_page_range(args.get("pages")),
            layout=args.get("html_layout") or None,
        )
        written, credits = await _convert(
            ctx, file_path, output_path, part, PdfOutput(), "convert_to_pdf"
        )
        return ToolResult(
            success=True, output=f"PDF created at {written}", credits_used=credits
        )


class ConvertToImage(Tool):
    name = "nutrient_convert_to_image"
    label = "Convert to Image"
    description = "Render PDF pages to PNG, JPEG or WebP images."
    parameters = {
        "type": "object",
        "required": ["file_path"],
        "properties": {
            "file_path": {"type": "string", "description": "Path or URL of the input PDF"},
            "output_path": {
                "type": "string",
                "description": "Path for the output image. Derived from the input name when omitted",
            },
            "format": {
                "type": "string",
                "enum": list(IMAGE_FORMATS),
                "default": "png",
                "description": "Image format (default: png)",
            },
            "pages": PAGE_RANGE_SCHEMA,
            "width": {"type": "number", "description": "Output width in px"},
            "height": {"type": "number", "description": "Output height in px"},
            "dpi": {"type": "number", "description": "Output resolution (default: 150)"},
        },
    }

    async def execute(self, args: "dict[str, Any]", ctx: "ToolContext") -> "ToolResult":
        file_path = require(args, "file_path")
        image_format = choice(args, "format", IMAGE_FORMATS, default="png")
        output_path = args.get("output_path") or derive_output_path(file_path, image_format)

        part = Part(file=file_path, pages=_page_range(args.get("pages")))
        output = ImageOutput(
            format=image_format,
            dpi=args.get("dpi"),
            width=args.get("width"),
            height=args.get("height"),
        )
        written, credits = await _convert(
            ctx, file_path, output_path, part, output, "convert_to_image"
        )
        return ToolResult(
            success=True, output=f"Image created at {written}", credits_used=credits
        )


class ConvertToOffice(Tool):
    name = "nutrient_convert_to_office"
    label = "Convert to Office"
    description = "Convert a PDF to an editable Office document (DOCX, XLSX or PPTX)."
    parameters = {
        "type": "object",
        "required": ["file_path", "format"],
        "properties": {
            "file_path": {"type": "string", "description": "Path or URL of the input PDF"},
            "output_path": {
                "type": "string",
                "description": "Path for the output Office file. Derived from the input name when omitted",
            },
            "format": {
                "type": "string",
                "enum": list(OFFICE_FORMATS),
                "description": "Target format",
            },
        },
    }

    async def execute(self, args: "dict[str, Any]", ctx: "ToolContext") -> "ToolResult":
        file_path = require(args, "file_path")
        office_format = choice(args, "format", OFFICE_FORMATS)
        output_path = args.get("output_path") or derive_output_path(file_path, office_format)

        written, credits = await _convert(
            ctx,
            file_path,
            output_path,
            Part(file=file_path),
            OfficeOutput(type=office_format),
            "convert_to_office",
        )
        return ToolResult(
            success=True,
            output=f"{office_format.upper()} created at {written}",
            credits_used=credits,
        )
