"""
Typed payloads sent to the document service.

Every payload is a dataclass whose optional fields default to None
and are left out of the serialized JSON when unset. Field names are
snake_case in Python and mapped to the service's camelCase names via
the "wire" metadata key.
"""

from dataclasses import dataclass, field, fields, is_dataclass
from typing import Any


def wire(name: "str", **kwargs: "Any") -> "Any":
    return field(metadata={"wire": name}, **kwargs)


def to_payload(value: "Any") -> "Any":
    """
    serializes a payload dataclass (or nested lists/dicts of them)
    into plain JSON-compatible values, dropping unset fields.
    """
    if is_dataclass(value) and not isinstance(value, type):
        result: "dict[str, Any]" = {}
        for f in fields(value):
            item = getattr(value, f.name)
            if item is None:
                continue
            result[f.metadata.get("wire", f.name)] = to_payload(item)
        return result
    if isinstance(value, (list, tuple)):
        return [to_payload(v) for v in value]
    if isinstance(value, dict):
        return {k: to_payload(v) for k, v in value.items() if v is not None}
    return value


@dataclass
class PageRange:
    start: "int | None" = None
    end: "int | None" = None


@dataclass
class Part:
    # reference key of a local file or the URL of a remote one
    file: "str"
    password: "str | None" = None
    pages: "PageRange | None" = None
    layout: "dict[str, Any] | None" = None


@dataclass
class PdfOutput:
    type: "str" = "pdf"


@dataclass
class ImageOutput:
    format: "str" = "png"
    dpi: "float | None" = None
    width: "float | None" = None
    height: "float | None" = None
    type: "str" = "image"


@dataclass
class OfficeOutput:
    # docx, xlsx or pptx
    type: "str"


@dataclass
class JsonContentOutput:
    plain_text: "bool | None" = wire("plainText", default=None)
    tables: "bool | None" = None
    key_value_pairs: "bool | None" = wire("keyValuePairs", default=None)
    language: "str | list[str] | None" = None
    type: "str" = "json-content"


@dataclass
class OcrAction:
    language: "str"
    type: "str" = "ocr"


@dataclass
class WatermarkAction:
    watermark_type: "str" = wire("watermarkType")
    width: "float | str"
    height: "float | str"
    opacity: "float | None" = None
    rotation: "float | None" = None
    text: "str | None" = None
    font_color: "str | None" = wire("fontColor", default=None)
    font_size: "float | None" = wire("fontSize", default=None)
    image: "str | None" = None
    type: "str" = "watermark"


@dataclass
class RedactionStrategyOptions:
    include_annotations: "bool" = wire("includeAnnotations", default=True)
    start: "int | None" = None
    limit: "int | None" = None
    preset: "str | None" = None
    regex: "str | None" = None
    text: "str | None" = None
    case_sensitive: "bool | None" = wire("caseSensitive", default=None)


@dataclass
class CreateRedactionsAction:
    strategy: "str"
    strategy_options: "RedactionStrategyOptions" = wire("strategyOptions")
    type: "str" = "createRedactions"


@dataclass
class ApplyRedactionsAction:
    type: "str" = "applyRedactions"


@dataclass
class BuildInstructions:
    """
    the body of a /build request: input parts, an optional chain of
    actions applied in order, and the desired output.
    """

    parts: "list[Part]"
    output: "Any"
    actions: "list[Any] | None" = None

    def to_dict(self) -> "dict[str, Any]":
        return to_payload(self)


@dataclass
class SignatureMetadata:
    signer_name: "str | None" = wire("signerName", default=None)
    signature_reason: "str | None" = wire("signatureReason", default=None)
    signature_location: "str | None" = wire("signatureLocation", default=None)


@dataclass
class SignaturePosition:
    page_index: "int" = wire("pageIndex")
    rect: "list[float]" = wire("rect")


@dataclass
class SignatureAppearance:
    mode: "str" = "signatureAndDescription"
    show_signer: "bool" = wire("showSigner", default=True)
    show_sign_date: "bool" = wire("showSignDate", default=True)


@dataclass
class SignatureOptions:
    signature_type: "str" = wire("signatureType", default="cms")
    flatten: "bool" = False
    signature_metadata: "SignatureMetadata | None" = wire(
        "signatureMetadata", default=None
    )
    position: "SignaturePosition | None" = None
    appearance: "SignatureAppearance | None" = None
    cades_level: "str | None" = wire("cadesLevel", default=None)

    @classmethod
    def build(
        cls,
        signature_type: "str" = "cms",
        flatten: "bool" = False,
        signer_name: "str | None" = None,
        reason: "str | None" = None,
        location: "str | None" = None,
        page_index: "int | None" = None,
        rect: "list[float] | None" = None,
        cades_level: "str | None" = None,
    ) -> "SignatureOptions":
        """
        metadata is only attached when at least one of its fields is
        given, a visible signature needs both page_index and rect, and
        the CAdES level only applies to cades signatures.
        """
        options = cls(signature_type=signature_type, flatten=flatten)

        if signer_name or reason or location:
            options.signature_metadata = SignatureMetadata(
                signer_name=signer_name or None,
                signature_reason=reason or None,
                signature_location=location or None,
            )

        if page_index is not None and rect:
            options.position = SignaturePosition(page_index=page_index, rect=list(rect))
            options.appearance = SignatureAppearance()

        if signature_type == "cades":
            options.cades_level = cades_level or "b-lt"

        return options


@dataclass
class AiRedactDocument:
    document_id: "str" = wire("documentId")


@dataclass
class AiRedactRequest:
    documents: "list[AiRedactDocument]"
    criteria: "str"
