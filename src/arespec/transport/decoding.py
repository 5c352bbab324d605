r"""Decode response payloads into response types.

``JSONResponseDecoder`` parses the payload as JSON and converts it into
the requested response type:

- ``None`` or ``typing.Any``: the parsed JSON value, unchanged
- ``Empty``: an ``Empty`` instance, whatever the payload
- a dataclass: built from a JSON object, nested dataclasses included;
  unknown keys are ignored
- ``dict``, ``list``, ``str``, ``int``, ``float``, ``bool``: the parsed
  value, checked against the type
- any other callable: called with the parsed value

Example:
    ```pycon
    >>> from dataclasses import dataclass
    >>> from arespec.transport.decoding import JSONResponseDecoder
    >>> @dataclass
    ... class User:
    ...     name: str
    ...
    >>> JSONResponseDecoder().decode(User, b'{"name": "YuAo", "age": 3}')
    User(name='YuAo')

    ```
"""

from __future__ import annotations

__all__ = ["JSONResponseDecoder", "ResponseDecoder", "convert", "decode_response"]

import dataclasses
import json
import logging
import types
import typing
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from arespec.exceptions import DecodingError
from arespec.request import Empty

if TYPE_CHECKING:
    from collections.abc import Callable

    import httpx

    from arespec.resolver import ResolvedRequest

logger: logging.Logger = logging.getLogger(__name__)

# Status codes whose responses may carry an empty body
EMPTY_RESPONSE_CODES = frozenset({204, 205})

_PLAIN_TYPES = (dict, list, str, int, float, bool)


class ResponseDecoder(ABC):
    """Decodes raw payloads into response types."""

    @abstractmethod
    def decode(self, response_type: Any, data: bytes) -> Any:
        """Decode ``data`` into ``response_type``.

        Raises:
            DecodingError: If the payload does not match the type.
        """


def _convert_dataclass(response_type: type, payload: Any) -> Any:
    if not isinstance(payload, Mapping):
        msg = f"Expected a JSON object for {response_type.__name__}, got {type(payload).__name__}"
        raise TypeError(msg)
    try:
        hints = typing.get_type_hints(response_type)
    except NameError:
        hints = {}
    kwargs = {
        f.name: convert(hints.get(f.name, Any), payload[f.name])
        for f in dataclasses.fields(response_type)
        if f.init and f.name in payload
    }
    return response_type(**kwargs)


def convert(response_type: Any, payload: Any) -> Any:
    """Convert a parsed JSON value into ``response_type``.

    Raises:
        TypeError: If the payload does not match the type.
        ValueError: If a converter rejects the payload.
    """
    if response_type is None or response_type is Any:
        return payload
    if response_type is Empty:
        return Empty()
    origin = typing.get_origin(response_type)
    if origin in (typing.Union, types.UnionType):
        args = typing.get_args(response_type)
        if payload is None and type(None) in args:
            return None
        members = [arg for arg in args if arg is not type(None)]
        return convert(members[0] if len(members) == 1 else Any, payload)
    if origin in (list, tuple, set, frozenset):
        args = typing.get_args(response_type)
        item_type = args[0] if args else Any
        if not isinstance(payload, list):
            msg = f"Expected a JSON array, got {type(payload).__name__}"
            raise TypeError(msg)
        return origin(convert(item_type, item) for item in payload)
    if origin is dict:
        args = typing.get_args(response_type)
        value_type = args[1] if len(args) == 2 else Any
        if not isinstance(payload, Mapping):
            msg = f"Expected a JSON object, got {type(payload).__name__}"
            raise TypeError(msg)
        return {key: convert(value_type, value) for key, value in payload.items()}
    if isinstance(response_type, type) and dataclasses.is_dataclass(response_type):
        return _convert_dataclass(response_type, payload)
    if response_type in _PLAIN_TYPES:
        if response_type is float and isinstance(payload, int) and not isinstance(payload, bool):
            return float(payload)
        if not isinstance(payload, response_type):
            msg = f"Expected {response_type.__name__}, got {type(payload).__name__}"
            raise TypeError(msg)
        return payload
    return response_type(payload)


class JSONResponseDecoder(ResponseDecoder):
    r"""Decoder for JSON payloads.

    Args:
        loads: Function parsing the payload. Defaults to ``json.loads``.
    """

    def __init__(self, loads: Callable[[bytes], Any] = json.loads) -> None:
        self._loads = loads

    def decode(self, response_type: Any, data: bytes) -> Any:
        if response_type is Empty:
            return Empty()
        try:
            return convert(response_type, self._loads(data))
        except (TypeError, ValueError, KeyError) as exc:
            name = getattr(response_type, "__name__", repr(response_type))
            msg = f"Cannot decode response into {name}: {exc}"
            logger.debug(msg)
            raise DecodingError(msg, response_type=response_type, data=data) from exc


def decode_response(
    decoder: ResponseDecoder,
    request: ResolvedRequest[Any],
    response: httpx.Response,
    data: bytes,
) -> Any:
    """Decode the body of ``response``.

    An empty body is accepted only for HEAD requests and 204/205
    responses, and only when the response type is ``Empty`` (or ``None``,
    which yields ``None``).

    Raises:
        DecodingError: If the body is empty where content is expected, or
            does not decode into the response type.
    """
    if data:
        return decoder.decode(request.response_type, data)
    if request.method == "HEAD" or response.status_code in EMPTY_RESPONSE_CODES:
        if request.response_type is Empty:
            return Empty()
        if request.response_type is None:
            return None
        msg = f"Empty response cannot be decoded into {request.response_type!r}"
        raise DecodingError(msg, response_type=request.response_type, data=data)
    msg = "Response data is empty"
    raise DecodingError(msg, response_type=request.response_type, data=data)
