r"""MIME type lookup for multipart file parts."""

from __future__ import annotations

__all__ = ["DEFAULT_MIME_TYPE", "mime_type_for_path"]

import mimetypes
from pathlib import PurePath

DEFAULT_MIME_TYPE = "application/octet-stream"


def mime_type_for_path(path: str | PurePath) -> str:
    """Return the MIME type registered for the extension of ``path``.

    Args:
        path: A file path. Only its extension is inspected.

    Returns:
        The MIME type, or ``application/octet-stream`` when the extension
        is missing or unknown.

    Example:
        ```pycon
        >>> from arespec.mime import mime_type_for_path
        >>> mime_type_for_path("/image.jpg")
        'image/jpeg'
        >>> mime_type_for_path("/image")
        'application/octet-stream'

        ```
    """
    suffix = PurePath(path).suffix
    if not suffix:
        return DEFAULT_MIME_TYPE
    mime_type, _ = mimetypes.guess_type(f"file{suffix.lower()}", strict=False)
    return mime_type or DEFAULT_MIME_TYPE
