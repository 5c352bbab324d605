r"""Merge a ``RequestSpec`` with ``RequestDefaults``.

``resolve`` is a pure projection: it never mutates its inputs and always
produces the same ``ResolvedRequest`` for the same inputs.

Example:
    ```pycon
    >>> from arespec.core.config import RequestDefaults
    >>> from arespec.request import QueryItem, RequestSpec
    >>> from arespec.resolver import resolve
    >>> defaults = RequestDefaults(
    ...     base_url="https://example.com",
    ...     method="GET",
    ...     query_items=[QueryItem("name", "YuAo")],
    ... )
    >>> resolved = resolve(RequestSpec(path="/", query_items=[QueryItem("id", "123")]), defaults)
    >>> resolved.url
    'https://example.com/?name=YuAo&id=123'

    ```
"""

from __future__ import annotations

__all__ = ["ResolvedRequest", "build_url", "resolve"]

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar
from urllib.parse import quote, urlsplit, urlunsplit

from arespec.request import DataItem, JsonEncoded, Multipart, UrlEncoded, header_items

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from arespec.core.config import RequestDefaults
    from arespec.request import HeaderItems, MultipartItem, Parameters, QueryItem, RequestSpec

T = TypeVar("T")

# Characters left unescaped in query names and values
_QUERY_SAFE = "/:@!$'()*,;?"

# Characters left unescaped in the appended path
_PATH_SAFE = "/:@!$&'()*+,;=-._~"


@dataclass(frozen=True)
class ResolvedRequest(Generic[T]):
    """Fully merged, transport-ready request.

    Args:
        url: Final URL, including the merged query string.
        method: Final HTTP method.
        headers: Final headers, defaults first.
        parameters: Final parameters, defaults merged in.
        timeout: Final timeout in seconds.
        response_type: The type the response decodes into.
    """

    url: str
    method: str
    headers: HeaderItems
    parameters: Parameters
    timeout: float
    response_type: Any = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", header_items(self.headers))


def _encode_query(items: Iterable[QueryItem]) -> str:
    parts = []
    for name, value in items:
        encoded = quote(name, safe=_QUERY_SAFE)
        if value is not None:
            encoded = f"{encoded}={quote(value, safe=_QUERY_SAFE)}"
        parts.append(encoded)
    return "&".join(parts)


def build_url(base_url: str, path: str, query_items: Iterable[QueryItem] = ()) -> str:
    """Append ``path`` as a path component of ``base_url`` and add the
    query entries.

    The path is joined on ``/`` boundaries: exactly one separator sits
    between the base path and ``path``. Characters that would end the
    path component, such as ``?``, ``#`` or spaces, are percent-encoded.
    Query entries already present on the base URL come first. When there
    are no query entries the URL is left as built from the path.

    Example:
        ```pycon
        >>> from arespec.request import QueryItem
        >>> from arespec.resolver import build_url
        >>> build_url("https://example.com/api/", "/users")
        'https://example.com/api/users'
        >>> build_url("https://example.com", "files/a b?c#d", [QueryItem("name", "YuAo")])
        'https://example.com/files/a%20b%3Fc%23d?name=YuAo'
        >>> build_url("https://example.com", "/", [QueryItem("a", "1"), QueryItem("a", None)])
        'https://example.com/?a=1&a'

        ```
    """
    parts = urlsplit(base_url)
    if path:
        escaped = quote(path.lstrip("/"), safe=_PATH_SAFE)
        parts = parts._replace(path=f"{parts.path.rstrip('/')}/{escaped}")
    items = list(query_items)
    if items:
        query = _encode_query(items)
        parts = parts._replace(query=f"{parts.query}&{query}" if parts.query else query)
    return urlunsplit(parts)


def _merge_multipart(
    default_parameters: Mapping[str, str], items: Iterable[MultipartItem]
) -> Multipart:
    resolved = [DataItem(value=value.encode("utf-8"), name=key) for key, value in default_parameters.items()]
    for item in items:
        resolved = [existing for existing in resolved if existing.name != item.name]
        resolved.append(item)
    return Multipart(tuple(resolved))


def _merge_parameters(parameters: Parameters, default_parameters: Mapping[str, str]) -> Parameters:
    if isinstance(parameters, Multipart):
        return _merge_multipart(default_parameters, parameters.items)
    if isinstance(parameters, UrlEncoded):
        merged: dict[str, Any] = dict(default_parameters)
        merged.update(parameters.values)
        return UrlEncoded(merged)
    if isinstance(parameters, JsonEncoded):
        return JsonEncoded({**default_parameters, **parameters.to_json_object()})
    msg = f"Unsupported parameters type: {type(parameters).__name__}"
    raise TypeError(msg)


def resolve(spec: RequestSpec[T], defaults: RequestDefaults) -> ResolvedRequest[T]:
    r"""Merge ``spec`` over ``defaults`` into a transport-ready request.

    The request's own values win over the defaults: base URL, method and
    timeout fall back to the defaults when the request leaves them unset.
    Headers and query entries are concatenated, defaults first. Default
    parameters are merged into every parameter variant, with the
    request's own keys (or multipart item names) taking precedence.

    Args:
        spec: The request description.
        defaults: The client-wide fallback values.

    Returns:
        The resolved request.

    Example:
        ```pycon
        >>> from arespec.core.config import RequestDefaults
        >>> from arespec.request import RequestSpec, UrlEncoded
        >>> from arespec.resolver import resolve
        >>> defaults = RequestDefaults(
        ...     base_url="https://example.com", method="POST", parameters={"type": "0"}
        ... )
        >>> resolve(RequestSpec(path="/", parameters=UrlEncoded({"id": 123})), defaults).parameters
        UrlEncoded({'type': '0', 'id': 123})

        ```
    """
    base_url = spec.base_url if spec.base_url is not None else defaults.base_url
    url = build_url(base_url, spec.path, [*defaults.query_items, *spec.query_items])
    headers = (*defaults.headers, *spec.headers)
    return ResolvedRequest(
        url=url,
        method=spec.method if spec.method is not None else defaults.method,
        headers=headers,
        parameters=_merge_parameters(spec.parameters, defaults.parameters),
        timeout=spec.timeout if spec.timeout is not None else defaults.timeout,
        response_type=spec.response_type,
    )
