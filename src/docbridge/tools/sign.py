import json
from typing import Any

from docbridge.errors import FileError
from docbridge.files import assert_different, build_reference, write_output
from docbridge.instructions import SignatureOptions, to_payload
from docbridge.models import MultipartBody, MultipartFile, ToolResult
from docbridge.tools.base import Tool, ToolContext, choice, record_usage, require

SIGNATURE_TYPES = ("cms", "cades")
CADES_LEVELS = ("b-lt", "b-t", "b-b")


def _local_file(
    field: "str", path: "str", sandbox_dir: "str | None", what: "str"
) -> "MultipartFile":
    ref = build_reference(path, sandbox_dir)
    if ref.local is None:
        raise FileError(f"{what} must be a local file, not a URL")
    return MultipartFile(field=field, filename=ref.name, content=ref.local.content)


class Sign(Tool):
    name = "nutrient_sign"
    label = "Sign PDF"
    description = (
        "Digitally sign a PDF with a CMS (PKCS#7) or CAdES signature, "
        "either invisible or visible with an optional watermark or graphic appearance."
    )
    parameters = {
        "type": "object",
        "required": ["file_path", "output_path"],
        "properties": {
            "file_path": {"type": "string", "description": "Path to the PDF to sign"},
            "output_path": {"type": "string", "description": "Path for the signed output PDF"},
            "signature_type": {
                "type": "string",
                "enum": list(SIGNATURE_TYPES),
                "default": "cms",
                "description": "Signature type (default: cms)",
            },
            "signer_name": {
                "type": "string",
                "description": "Name of the person or organization signing",
            },
            "reason": {"type": "string", "description": "Reason for signing"},
            "location": {"type": "string", "description": "Location of signing"},
            "flatten": {
                "type": "boolean",
                "default": False,
                "description": "Flatten the document before signing",
            },
            "page_index": {
                "type": "integer",
                "minimum": 0,
                "description": "Page for a visible signature (0-based). Omit for an invisible signature.",
            },
            "rect": {
                "type": "array",
                "items": {"type": "number"},
                "minItems": 4,
                "maxItems": 4,
                "description": "Bounding box [left, top, width, height] in PDF points for a visible signature",
            },
            "cades_level": {
                "type": "string",
                "enum": list(CADES_LEVELS),
                "default": "b-lt",
                "description": "CAdES level (only for the cades signature type)",
            },
            "watermark_image_path": {
                "type": "string",
                "description": "Path to a watermark image for the signature appearance",
            },
            "graphic_image_path": {
                "type": "string",
                "description": "Path to a graphic image for the signature appearance",
            },
        },
    }

    async def execute(self, args: "dict[str, Any]", ctx: "ToolContext") -> "ToolResult":
        file_path = require(args, "file_path")
        output_path = require(args, "output_path")
        signature_type = choice(args, "signature_type", SIGNATURE_TYPES, default="cms")
        cades_level = choice(args, "cades_level", CADES_LEVELS, default="b-lt")

        assert_different(file_path, output_path, ctx.sandbox_dir)

        files = [_local_file("file", file_path, ctx.sandbox_dir, "Document to sign")]

        options = SignatureOptions.build(
            signature_type=signature_type,
            flatten=bool(args.get("flatten", False)),
            signer_name=args.get("signer_name"),
            reason=args.get("reason"),
            location=args.get("location"),
            page_index=args.get("page_index"),
            rect=args.get("rect"),
            cades_level=cades_level,
        )

        if args.get("watermark_image_path"):
            files.append(
                _local_file(
                    "watermark",
                    args["watermark_image_path"],
                    ctx.sandbox_dir,
                    "Watermark image",
                )
            )
        if args.get("graphic_image_path"):
            files.append(
                _local_file(
                    "graphic", args["graphic_image_path"], ctx.sandbox_dir, "Graphic image"
                )
            )

        body = MultipartBody(
            fields={"data": json.dumps(to_payload(options))}, files=tuple(files)
        )
        response = await ctx.client.post("sign", body)

        written = write_output(response.data, output_path, ctx.sandbox_dir)
        record_usage(ctx, "sign", response)
        return ToolResult(
            success=True,
            output=f"Signed PDF saved to {written}",
            credits_used=response.credits_used,
        )
