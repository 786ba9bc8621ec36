import os
import re
from urllib.parse import urlparse

from docbridge.errors import (
    KeyCollisionError,
    MissingFileError,
    NotAFileError,
    PathEscapeError,
    SameFileError,
)
from docbridge.models import FileReference, LocalFile

_URL_PREFIXES = ("http://", "https://")
_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9]")


def is_url(path: "str") -> "bool":
    return path.startswith(_URL_PREFIXES)


def resolve_for_read(path: "str", sandbox_dir: "str | None" = None) -> "str":
    """
    resolves path to an absolute path. When sandbox_dir is set the
    path is resolved against it and anything that lands outside of
    it, relative traversal or absolute path alike, is rejected.
    Only path arithmetic happens here, nothing touches the disk.
    """
    if not sandbox_dir:
        return os.path.abspath(path)

    root = os.path.abspath(sandbox_dir)
    resolved = os.path.abspath(os.path.join(root, path))
    prefix = root if root.endswith(os.sep) else root + os.sep
    if resolved != root and not resolved.startswith(prefix):
        raise PathEscapeError(f'Path "{path}" escapes sandbox directory')
    return resolved


def resolve_for_write(path: "str", sandbox_dir: "str | None" = None) -> "str":
    """
    resolves path like resolve_for_read and creates any missing
    parent directories.
    """
    resolved = resolve_for_read(path, sandbox_dir)
    os.makedirs(os.path.dirname(resolved), exist_ok=True)
    return resolved


def assert_different(
    input_path: "str",
    output_path: "str",
    sandbox_dir: "str | None" = None,
) -> "None":
    """
    guards against an output overwriting the input that the
    in-flight request is still reading.
    """
    if resolve_for_read(input_path, sandbox_dir) == resolve_for_read(
        output_path, sandbox_dir
    ):
        raise SameFileError(
            "Output path must be different from input path to prevent data corruption"
        )


def sanitize_key(name: "str") -> "str":
    return _UNSAFE_KEY_CHARS.sub("_", name)


def build_reference(path: "str", sandbox_dir: "str | None" = None) -> "FileReference":
    """
    turns a local path or an http(s) URL into a FileReference.

    URLs are passed through untouched and never checked against the
    sandbox, the service fetches them itself. Local files are read
    into memory in full.
    """
    if is_url(path):
        return FileReference(key=path, name=path, url=path)

    resolved = resolve_for_read(path, sandbox_dir)
    if not os.path.exists(resolved):
        raise MissingFileError(f"File not found: {path}")
    if not os.path.isfile(resolved):
        raise NotAFileError(f"Not a file: {path}")

    with open(resolved, "rb") as f:
        content = f.read()

    name = os.path.basename(resolved)
    return FileReference(
        key=sanitize_key(name),
        name=name,
        local=LocalFile(content=content, path=resolved),
    )


def add_reference(
    refs: "dict[str, FileReference]", ref: "FileReference"
) -> "FileReference":
    """
    adds ref to refs under its key. Two different files whose names
    sanitize to the same key cannot share a request, one of them
    would be silently dropped from the upload.
    """
    existing = refs.get(ref.key)
    if existing is not None and existing != ref:
        raise KeyCollisionError(
            f'Files "{existing.name}" and "{ref.name}" map to the same '
            f'upload key "{ref.key}"; rename one of them'
        )
    refs[ref.key] = ref
    return ref


def derive_output_path(input_path: "str", extension: "str", suffix: "str" = "") -> "str":
    """
    derives an output path from the input: same directory, same stem,
    new extension (report.docx -> report.pdf). URL inputs produce a
    bare file name so the output lands in the sandbox or working dir.
    """
    if is_url(input_path):
        url_path = urlparse(input_path).path
        base = os.path.basename(url_path) or "document"
        stem = os.path.splitext(base)[0]
        return f"{stem}{suffix}.{extension}"

    directory, base = os.path.split(input_path)
    stem = os.path.splitext(base)[0]
    return os.path.join(directory, f"{stem}{suffix}.{extension}")


def write_output(
    data: "bytes | str",
    output_path: "str",
    sandbox_dir: "str | None" = None,
) -> "str":
    """
    writes a response body to output_path and returns the absolute
    path written.
    """
    resolved = resolve_for_write(output_path, sandbox_dir)
    content = data.encode("utf-8") if isinstance(data, str) else data
    with open(resolved, "wb") as f:
        f.write(content)
    return resolved
