r"""Network layer of the request pipeline."""

from __future__ import annotations

__all__ = [
    "HttpxNetworkRequest",
    "HttpxTransport",
    "JSONResponseDecoder",
    "MockedNetworkRequest",
    "NetworkRequest",
    "ResponseDecoder",
    "Transport",
    "TransportEvents",
]

from arespec.transport.base import NetworkRequest, Transport, TransportEvents
from arespec.transport.decoding import JSONResponseDecoder, ResponseDecoder
from arespec.transport.httpx_transport import HttpxNetworkRequest, HttpxTransport
from arespec.transport.mock import MockedNetworkRequest
