r"""Translate resolved requests into ``httpx`` requests.

URL-encoded parameters go to the query string for GET, HEAD and DELETE
requests and to a form body otherwise; keys mapped to ``None`` are
dropped. Multipart items are sent in order, file parts are streamed from
disk. JSON parameters become a JSON body.
"""

from __future__ import annotations

__all__ = [
    "PartialFileReader",
    "build_httpx_request",
    "encode_parameters",
    "request_body_length",
]

import io
from typing import TYPE_CHECKING, Any

from arespec.exceptions import RequestEncodingError
from arespec.request import (
    DataItem,
    FileDataItem,
    FileItem,
    JsonEncoded,
    Multipart,
    PartialFileItem,
    QueryItem,
    UrlEncoded,
)
from arespec.resolver import build_url

if TYPE_CHECKING:
    from contextlib import ExitStack
    from pathlib import Path

    import httpx

    from arespec.request import MultipartItem, Parameters
    from arespec.resolver import ResolvedRequest

# Methods whose URL-encoded parameters are sent in the query string
QUERY_STRING_METHODS = frozenset({"GET", "HEAD", "DELETE"})


class PartialFileReader(io.RawIOBase):
    r"""Binary reader over ``length`` bytes of a file, starting at
    ``offset``.

    Positions reported by ``tell`` and accepted by ``seek`` are relative
    to the start of the window, so the reader looks like a file of
    ``length`` bytes.

    Args:
        file: A binary file object opened for reading.
        offset: Start of the window in the file.
        length: Size of the window.

    Example:
        ```pycon
        >>> import io
        >>> from arespec.transport.encoding import PartialFileReader
        >>> reader = PartialFileReader(io.BytesIO(b"0123456789"), offset=2, length=5)
        >>> reader.read()
        b'23456'
        >>> reader.seek(0, io.SEEK_END)
        5

        ```
    """

    def __init__(self, file: io.BufferedIOBase | io.RawIOBase, offset: int, length: int) -> None:
        super().__init__()
        if offset < 0 or length < 0:
            msg = f"offset and length must be >= 0, got offset={offset}, length={length}"
            raise ValueError(msg)
        self._file = file
        self._offset = offset
        self._length = length
        self._position = 0
        self._file.seek(offset)

    @classmethod
    def open(cls, path: str | Path, offset: int, length: int) -> PartialFileReader:
        """Open the file at ``path`` and wrap the requested window."""
        file = open(path, "rb")  # noqa: SIM115
        try:
            return cls(file, offset=offset, length=length)
        except BaseException:
            file.close()
            raise

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def tell(self) -> int:
        return self._position

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        if whence == io.SEEK_SET:
            position = offset
        elif whence == io.SEEK_CUR:
            position = self._position + offset
        elif whence == io.SEEK_END:
            position = self._length + offset
        else:
            msg = f"invalid whence ({whence})"
            raise ValueError(msg)
        self._position = max(0, min(position, self._length))
        self._file.seek(self._offset + self._position)
        return self._position

    def read(self, size: int = -1) -> bytes:
        remaining = self._length - self._position
        if remaining <= 0:
            return b""
        if size is None or size < 0 or size > remaining:
            size = remaining
        data = self._file.read(size)
        self._position += len(data)
        return data

    def readinto(self, buffer: Any) -> int:
        data = self.read(len(buffer))
        buffer[: len(data)] = data
        return len(data)

    def close(self) -> None:
        if not self.closed:
            self._file.close()
        super().close()


def _form_value(value: Any) -> str | list[str]:
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (list, tuple)):
        return [_form_value(item) for item in value]  # type: ignore[misc]
    return str(value)


def _query_items(values: dict[str, str | list[str]]) -> list[QueryItem]:
    items = []
    for key, value in values.items():
        if isinstance(value, list):
            items.extend(QueryItem(key, item) for item in value)
        else:
            items.append(QueryItem(key, value))
    return items


def _open_part(item: MultipartItem, stack: ExitStack) -> tuple[str, tuple[Any, ...]]:
    if isinstance(item, DataItem):
        return item.name, (None, item.value)
    if isinstance(item, FileDataItem):
        return item.name, (item.filename, item.data, item.mime_type)
    try:
        if isinstance(item, FileItem):
            file = stack.enter_context(open(item.path, "rb"))  # noqa: SIM115
        elif isinstance(item, PartialFileItem):
            file = stack.enter_context(
                PartialFileReader.open(item.path, offset=item.offset, length=item.length)
            )
        else:
            msg = f"Unsupported multipart item: {type(item).__name__}"
            raise TypeError(msg)
    except OSError as exc:
        msg = f"Cannot open {item.path} for multipart item {item.name!r}: {exc}"
        raise RequestEncodingError(msg) from exc
    return item.name, (item.filename, file, item.mime_type)


def encode_parameters(
    method: str, url: str, parameters: Parameters, stack: ExitStack
) -> tuple[str, dict[str, Any]]:
    """Return the final URL and the ``httpx`` body arguments for
    ``parameters``.

    Args:
        method: The HTTP method.
        url: The resolved URL.
        parameters: The resolved parameters.
        stack: Exit stack owning the files opened for multipart parts.
            It must stay open until the request has been sent.

    Returns:
        A tuple ``(url, kwargs)`` where ``kwargs`` holds ``data``,
        ``files`` or ``json`` as needed.

    Raises:
        RequestEncodingError: If a file part cannot be opened.
    """
    if isinstance(parameters, UrlEncoded):
        values = {k: _form_value(v) for k, v in parameters.values.items() if v is not None}
        if not values:
            return url, {}
        if method.upper() in QUERY_STRING_METHODS:
            return build_url(url, "", _query_items(values)), {}
        return url, {"data": values}
    if isinstance(parameters, Multipart):
        files = [_open_part(item, stack) for item in parameters.items]
        return url, {"files": files} if files else {}
    if isinstance(parameters, JsonEncoded):
        return url, {"json": parameters.to_json_object()}
    msg = f"Unsupported parameters type: {type(parameters).__name__}"
    raise TypeError(msg)


def build_httpx_request(
    client: httpx.AsyncClient, request: ResolvedRequest[Any], stack: ExitStack
) -> httpx.Request:
    """Build the ``httpx.Request`` sent for ``request``.

    Args:
        client: The client the request is built for.
        request: The resolved request.
        stack: Exit stack owning the files opened for multipart parts.

    Returns:
        The ``httpx.Request``.

    Raises:
        RequestEncodingError: If the parameters cannot be encoded.
    """
    url, kwargs = encode_parameters(request.method, request.url, request.parameters, stack)
    try:
        return client.build_request(
            request.method,
            url,
            headers=request.headers,
            timeout=request.timeout,
            **kwargs,
        )
    except (TypeError, ValueError) as exc:
        msg = f"Cannot encode {request.method} request to {request.url}: {exc}"
        raise RequestEncodingError(msg) from exc


def request_body_length(request: httpx.Request) -> int | None:
    """Return the request body size announced in Content-Length, if
    any."""
    length = request.headers.get("Content-Length")
    if length is None or not length.isdigit():
        return None
    return int(length)

