r"""Declarative request descriptions.

A ``RequestSpec`` describes one request: its path, optional overrides of
the client defaults, its parameters and the type its response decodes
into. Specs are immutable; the client merges them with its
``RequestDefaults`` at send time.

Example:
    ```pycon
    >>> from arespec.request import JsonEncoded, QueryItem, RequestSpec
    >>> spec = RequestSpec(
    ...     path="/users",
    ...     method="POST",
    ...     query_items=[QueryItem("page", "2")],
    ...     parameters=JsonEncoded({"name": "YuAo"}),
    ... )
    >>> spec.method
    'POST'
    >>> spec.query_items
    (QueryItem(name='page', value='2'),)

    ```
"""

from __future__ import annotations

__all__ = [
    "DataItem",
    "Empty",
    "FileDataItem",
    "FileItem",
    "HeaderItems",
    "JsonEncoded",
    "Multipart",
    "MultipartItem",
    "Parameters",
    "PartialFileItem",
    "QueryItem",
    "RequestSpec",
    "UrlEncoded",
    "file_item",
    "header_items",
    "partial_file_item",
    "string_item",
]

import dataclasses
import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Generic, NamedTuple, TypeVar, Union

import httpx

from arespec.mime import mime_type_for_path

if TYPE_CHECKING:
    from arespec.result import Result

T = TypeVar("T")


class QueryItem(NamedTuple):
    """One query string entry. A ``None`` value renders as a bare name."""

    name: str
    value: str | None = None


# Ordered (name, value) header pairs; a name may repeat
HeaderItems = tuple[tuple[str, str], ...]


def header_items(headers: Any) -> HeaderItems:
    """Return ``headers`` as immutable (name, value) pairs.

    ``headers`` is anything ``httpx.Headers`` accepts: a mapping, a
    sequence of pairs or another ``httpx.Headers``. Order, name casing and
    repeated names are kept.

    Example:
        ```pycon
        >>> from arespec.request import header_items
        >>> header_items([("X-Tag", "a"), ("X-Tag", "b")])
        (('X-Tag', 'a'), ('X-Tag', 'b'))

        ```
    """
    parsed = httpx.Headers(headers)
    encoding = parsed.encoding
    return tuple((key.decode(encoding), value.decode(encoding)) for key, value in parsed.raw)


@dataclass(frozen=True)
class Empty:
    """Response type for requests whose body carries no content."""


########################
#     Multipart items  #
########################


@dataclass(frozen=True)
class DataItem:
    """Raw bytes sent as a plain form field."""

    value: bytes
    name: str


@dataclass(frozen=True)
class FileDataItem:
    """In-memory file part."""

    data: bytes
    name: str
    filename: str
    mime_type: str


@dataclass(frozen=True)
class FileItem:
    """File part read from disk when the request is sent."""

    path: Path
    name: str
    filename: str
    mime_type: str


@dataclass(frozen=True)
class PartialFileItem:
    """File part made of ``length`` bytes of a file, starting at
    ``offset``."""

    path: Path
    offset: int
    length: int
    name: str
    filename: str
    mime_type: str


MultipartItem = Union[DataItem, FileDataItem, FileItem, PartialFileItem]


def string_item(value: str, name: str) -> DataItem:
    """Build a form field from a string, encoded as UTF-8.

    Example:
        ```pycon
        >>> from arespec.request import string_item
        >>> string_item("value", name="key")
        DataItem(value=b'value', name='key')

        ```
    """
    return DataItem(value=value.encode("utf-8"), name=name)


def file_item(path: str | Path, name: str) -> FileItem:
    """Build a file part, deriving filename and MIME type from the path.

    Example:
        ```pycon
        >>> from arespec.request import file_item
        >>> item = file_item("/image.jpg", name="key")
        >>> item.filename, item.mime_type
        ('image.jpg', 'image/jpeg')

        ```
    """
    path = Path(path)
    return FileItem(path=path, name=name, filename=path.name, mime_type=mime_type_for_path(path))


def partial_file_item(path: str | Path, offset: int, length: int, name: str) -> PartialFileItem:
    """Build a partial file part, deriving filename and MIME type from the
    path."""
    path = Path(path)
    return PartialFileItem(
        path=path,
        offset=offset,
        length=length,
        name=name,
        filename=path.name,
        mime_type=mime_type_for_path(path),
    )


######################
#     Parameters     #
######################


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return frozenset((key, _freeze(item)) for key, item in value.items())
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    if isinstance(value, (set, frozenset)):
        return frozenset(_freeze(item) for item in value)
    return value


@dataclass(frozen=True, eq=False)
class UrlEncoded:
    r"""URL-encoded parameters.

    A key mapped to ``None`` is kept in the mapping so it can override a
    default of the same name; it is dropped when the request is encoded.

    Example:
        ```pycon
        >>> from arespec.request import UrlEncoded
        >>> UrlEncoded({"name": None}) == UrlEncoded({})
        False

        ```
    """

    values: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UrlEncoded):
            return NotImplemented
        return dict(self.values) == dict(other.values)

    def __hash__(self) -> int:
        return hash(_freeze(self.values))

    def __repr__(self) -> str:
        return f"UrlEncoded({dict(self.values)!r})"


@dataclass(frozen=True)
class Multipart:
    """Ordered multipart form items."""

    items: tuple[MultipartItem, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))


def _json_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, Mapping):
        return dict(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=repr)
    msg = f"Object of type {type(value).__name__} is not JSON serializable"
    raise TypeError(msg)


@dataclass(frozen=True, eq=False)
class JsonEncoded:
    r"""A JSON object body.

    ``value`` is a mapping or a dataclass instance. Equality and hashing
    are structural: key order does not matter.

    Example:
        ```pycon
        >>> from arespec.request import JsonEncoded
        >>> JsonEncoded({"a": 1, "b": 2}) == JsonEncoded({"b": 2, "a": 1})
        True

        ```
    """

    value: Any = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.value, Mapping) and not (
            dataclasses.is_dataclass(self.value) and not isinstance(self.value, type)
        ):
            msg = f"JsonEncoded value must be a mapping or a dataclass instance, got {type(self.value).__name__}"
            raise TypeError(msg)

    def to_json_object(self) -> dict[str, Any]:
        """Return the value as a plain ``dict`` ready for ``json.dumps``."""
        if isinstance(self.value, Mapping):
            return dict(self.value)
        return dataclasses.asdict(self.value)

    def _canonical(self) -> str:
        return json.dumps(self.to_json_object(), sort_keys=True, default=_json_default)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, JsonEncoded):
            return NotImplemented
        return self._canonical() == other._canonical()

    def __hash__(self) -> int:
        return hash(self._canonical())


Parameters = Union[UrlEncoded, Multipart, JsonEncoded]


#######################
#     RequestSpec     #
#######################


@dataclass(frozen=True)
class RequestSpec(Generic[T]):
    r"""Immutable description of one request.

    Args:
        path: Path appended to the base URL.
        response_type: The type the response payload decodes into. ``None``
            returns the parsed JSON as is.
        base_url: Overrides the client's base URL.
        query_items: Query entries appended after the default ones.
            Duplicates are kept.
        method: Overrides the client's default HTTP method.
        headers: Headers added after the default ones. Stored as
            ``HeaderItems``.
        parameters: The request parameters.
        timeout: Overrides the client's default timeout, in seconds.
        mock: When set, the client delivers this result instead of
            performing the request.

    Example:
        ```pycon
        >>> from arespec.request import RequestSpec
        >>> spec = RequestSpec(path="/", headers={"Cookie": "cookie=value"})
        >>> spec.headers
        (('Cookie', 'cookie=value'),)
        >>> spec.parameters
        UrlEncoded({})

        ```
    """

    path: str
    response_type: Any = None
    base_url: str | None = None
    query_items: tuple[QueryItem, ...] = ()
    method: str | None = None
    headers: HeaderItems = ()
    parameters: Parameters = field(default_factory=UrlEncoded)
    timeout: float | None = None
    mock: Result[T] | None = field(default=None, compare=False, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "query_items", tuple(QueryItem(*item) for item in self.query_items)
        )
        object.__setattr__(self, "headers", header_items(self.headers))
        if self.method is not None:
            object.__setattr__(self, "method", self.method.upper())
