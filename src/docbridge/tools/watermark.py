from typing import Any

from docbridge.errors import InvalidParameterError
from docbridge.files import add_reference, assert_different, build_reference, write_output
from docbridge.instructions import BuildInstructions, Part, PdfOutput, WatermarkAction
from docbridge.models import FileReference, ToolResult
from docbridge.request_body import build_request_body
from docbridge.tools.base import Tool, ToolContext, choice, record_usage, require

WATERMARK_TYPES = ("text", "image")


class Watermark(Tool):
    name = "nutrient_watermark"
    label = "Watermark"
    description = (
        "Add a text or image watermark to a PDF. Supports opacity, rotation, "
        "font color, font size, and positioning."
    )
    parameters = {
        "type": "object",
        "required": ["file_path", "output_path", "watermark_type", "width", "height"],
        "properties": {
            "file_path": {"type": "string", "description": "Path or URL of the input PDF"},
            "output_path": {"type": "string", "description": "Path for the output PDF"},
            "watermark_type": {
                "type": "string",
                "enum": list(WATERMARK_TYPES),
                "description": "Type of watermark",
            },
            "text": {
                "type": "string",
                "description": "Watermark text (required if watermark_type is text)",
            },
            "image_path": {
                "type": "string",
                "description": "Path or URL of the watermark image (required if watermark_type is image)",
            },
            "width": {
                "oneOf": [{"type": "number"}, {"type": "string"}],
                "description": "Width in points or percentage (e.g. '50%')",
            },
            "height": {
                "oneOf": [{"type": "number"}, {"type": "string"}],
                "description": "Height in points or percentage (e.g. '50%')",
            },
            "opacity": {
                "type": "number",
                "minimum": 0,
                "maximum": 1,
                "description": "Opacity 0-1 (default: 0.7)",
            },
            "rotation": {"type": "number", "description": "Degrees counter-clockwise"},
            "font_color": {"type": "string", "description": "Hex color for text (e.g. '#FF0000')"},
            "font_size": {"type": "number", "description": "Font size in points"},
        },
    }

    async def execute(self, args: "dict[str, Any]", ctx: "ToolContext") -> "ToolResult":
        file_path = require(args, "file_path")
        output_path = require(args, "output_path")
        watermark_type = choice(args, "watermark_type", WATERMARK_TYPES)
        action = WatermarkAction(
            watermark_type=watermark_type,
            width=require(args, "width"),
            height=require(args, "height"),
            opacity=args.get("opacity"),
            rotation=args.get("rotation"),
        )

        assert_different(file_path, output_path, ctx.sandbox_dir)

        refs: "dict[str, FileReference]" = {}
        ref = add_reference(refs, build_reference(file_path, ctx.sandbox_dir))

        if watermark_type == "text":
            text = args.get("text")
            if not text:
                raise InvalidParameterError('text is required when watermark_type is "text"')
            action.text = text
            action.font_color = args.get("font_color") or None
            action.font_size = args.get("font_size")
        else:
            image_path = args.get("image_path")
            if not image_path:
                raise InvalidParameterError(
                    'image_path is required when watermark_type is "image"'
                )
            # the image travels as a second file of the same request
            image_ref = add_reference(refs, build_reference(image_path, ctx.sandbox_dir))
            action.image = image_ref.pointer

        instructions = BuildInstructions(
            parts=[Part(file=ref.pointer)],
            actions=[action],
            output=PdfOutput(),
        ).to_dict()
        response = await ctx.client.post("build", build_request_body(instructions, refs))

        written = write_output(response.data, output_path, ctx.sandbox_dir)
        record_usage(ctx, "watermark", response)
        return ToolResult(
            success=True,
            output=f"Watermarked PDF created at {written}",
            credits_used=response.credits_used,
        )
