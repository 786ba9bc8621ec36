import json
from typing import Any, Mapping

from docbridge.models import FileReference, JsonBody, MultipartBody, MultipartFile, RequestBody

INSTRUCTIONS_FIELD = "instructions"


def build_request_body(
    instructions: "Any",
    file_refs: "Mapping[str, FileReference]",
) -> "RequestBody":
    """
    picks the wire shape for a build request.

    When nothing local has to be uploaded (no references, or only
    URLs the service fetches server-side) the instructions are sent
    as-is as a JSON body. Otherwise a multipart body is built with
    the serialized instructions plus one file field per local
    reference, keyed by the reference key the instructions point at.
    """
    refs = list(file_refs.values())
    if all(ref.is_remote for ref in refs):
        return JsonBody(payload=instructions)

    files = tuple(
        MultipartFile(field=ref.key, filename=ref.name, content=ref.local.content)
        for ref in refs
        if ref.local is not None
    )
    return MultipartBody(
        fields={INSTRUCTIONS_FIELD: json.dumps(instructions)},
        files=files,
    )
