from __future__ import annotations

import posixpath

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Fixed table so uploads get the same Content-Type on every platform,
# independent of the host's mime.types.
CONTENT_TYPES = {
    "css": "text/css",
    "csv": "text/csv",
    "eot": "application/vnd.ms-fontobject",
    "gif": "image/gif",
    "gz": "application/gzip",
    "htm": "text/html",
    "html": "text/html",
    "ico": "image/x-icon",
    "jpeg": "image/jpeg",
    "jpg": "image/jpeg",
    "js": "application/javascript",
    "json": "application/json",
    "map": "application/json",
    "md": "text/markdown",
    "mp3": "audio/mpeg",
    "mp4": "video/mp4",
    "otf": "font/otf",
    "pdf": "application/pdf",
    "png": "image/png",
    "svg": "image/svg+xml",
    "tar": "application/x-tar",
    "ttf": "font/ttf",
    "txt": "text/plain",
    "wav": "audio/wav",
    "webm": "video/webm",
    "webp": "image/webp",
    "woff": "font/woff",
    "woff2": "font/woff2",
    "xml": "application/xml",
    "zip": "application/zip",
}


def guess_content_type(key: str) -> str:
    _, ext = posixpath.splitext((key or "").lower())
    return CONTENT_TYPES.get(ext.lstrip("."), DEFAULT_CONTENT_TYPE)
