"""Extension to MIME type table for embedded repository media."""

import re

DEFAULT_MIME_TYPE = "application/octet-stream"

MIME_TYPES: dict[str, str] = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "webp": "image/webp",
    "svg": "image/svg+xml",
    "bmp": "image/bmp",
    "ico": "image/x-icon",
    "mp4": "video/mp4",
    "webm": "video/webm",
    "ogg": "video/ogg",
    "mov": "video/quicktime",
}

_VIDEO_PATTERN = re.compile(r"\.(mp4|webm|ogg|mov)$", re.IGNORECASE)


def file_extension(path: str) -> str:
    """Lower-cased extension of the last path segment, or "" when there is none."""
    name = path.rsplit("/", 1)[-1]
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[-1].lower()


def mime_type_for(path: str) -> str:
    """Infer a MIME type from a file name; unknown extensions are octet-stream."""
    return MIME_TYPES.get(file_extension(path), DEFAULT_MIME_TYPE)


def is_video(path: str) -> bool:
    return bool(_VIDEO_PATTERN.search(path))


def build_data_url(mime_type: str, base64_payload: str) -> str:
    """Embed a base64 payload in a data URL."""
    return f"data:{mime_type};base64,{base64_payload}"
