from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional
from unittest.mock import Mock

import httpx
import pytest
from coola.equality import objects_are_equal

from arespec.exceptions import DecodingError
from arespec.request import Empty, UrlEncoded
from arespec.resolver import ResolvedRequest
from arespec.transport.decoding import JSONResponseDecoder, convert, decode_response


@dataclass
class Address:
    city: str


@dataclass
class User:
    name: str
    age: int = 0
    address: Optional[Address] = None
    tags: list[str] = field(default_factory=list)


def make_request(method: str = "GET", response_type: Any = None) -> ResolvedRequest:
    return ResolvedRequest(
        url="https://example.com/",
        method=method,
        headers=httpx.Headers(),
        parameters=UrlEncoded(),
        timeout=30.0,
        response_type=response_type,
    )


#############################
#     Tests for convert     #
#############################


@pytest.mark.parametrize("response_type", [None, Any])
def test_convert_passthrough(response_type: Any) -> None:
    payload = {"a": [1, 2]}
    assert convert(response_type, payload) is payload


def test_convert_empty() -> None:
    assert convert(Empty, {"anything": 1}) == Empty()


def test_convert_dataclass() -> None:
    payload = {"name": "YuAo", "age": 3, "address": {"city": "Paris"}, "tags": ["a"], "x": 1}
    assert convert(User, payload) == User(
        name="YuAo", age=3, address=Address(city="Paris"), tags=["a"]
    )


def test_convert_dataclass_missing_optional_fields() -> None:
    assert convert(User, {"name": "YuAo"}) == User(name="YuAo")


def test_convert_dataclass_missing_required_field() -> None:
    with pytest.raises(TypeError):
        convert(User, {"age": 3})


def test_convert_dataclass_requires_object() -> None:
    with pytest.raises(TypeError, match="Expected a JSON object for User"):
        convert(User, [1, 2])


def test_convert_list_of_dataclasses() -> None:
    assert convert(list[Address], [{"city": "Paris"}, {"city": "Rome"}]) == [
        Address(city="Paris"),
        Address(city="Rome"),
    ]


def test_convert_dict_values() -> None:
    assert objects_are_equal(
        convert(dict[str, Address], {"home": {"city": "Paris"}}), {"home": Address(city="Paris")}
    )


def test_convert_optional_none() -> None:
    assert convert(Optional[Address], None) is None


def test_convert_float_accepts_int() -> None:
    assert convert(float, 3) == 3.0


@pytest.mark.parametrize(
    ("response_type", "payload"), [(int, "3"), (str, 3), (list, {}), (bool, None)]
)
def test_convert_plain_type_mismatch(response_type: type, payload: Any) -> None:
    with pytest.raises(TypeError, match="Expected"):
        convert(response_type, payload)


def test_convert_callable() -> None:
    assert convert(lambda value: value["id"] * 2, {"id": 21}) == 42


#########################################
#     Tests for JSONResponseDecoder     #
#########################################


def test_json_decoder_decodes_dataclass() -> None:
    assert JSONResponseDecoder().decode(User, b'{"name": "YuAo"}') == User(name="YuAo")


def test_json_decoder_invalid_json() -> None:
    with pytest.raises(DecodingError, match="Cannot decode response") as exc_info:
        JSONResponseDecoder().decode(User, b"not json")
    assert exc_info.value.response_type is User
    assert exc_info.value.data == b"not json"


def test_json_decoder_type_mismatch() -> None:
    with pytest.raises(DecodingError):
        JSONResponseDecoder().decode(User, b"[1, 2]")


def test_json_decoder_empty_type_ignores_payload() -> None:
    assert JSONResponseDecoder().decode(Empty, b"not json") == Empty()


def test_json_decoder_custom_loads() -> None:
    loads = Mock(return_value={"name": "custom"})
    assert JSONResponseDecoder(loads=loads).decode(User, b"payload") == User(name="custom")
    loads.assert_called_once_with(b"payload")


#####################################
#     Tests for decode_response     #
#####################################


def test_decode_response_with_body() -> None:
    response = httpx.Response(200)
    assert decode_response(JSONResponseDecoder(), make_request(), response, b'{"id": 1}') == {
        "id": 1
    }


@pytest.mark.parametrize("status_code", [204, 205])
def test_decode_response_empty_body_status(status_code: int) -> None:
    response = httpx.Response(status_code)
    request = make_request(response_type=Empty)
    assert decode_response(JSONResponseDecoder(), request, response, b"") == Empty()


def test_decode_response_empty_body_head() -> None:
    request = make_request(method="HEAD", response_type=Empty)
    assert decode_response(JSONResponseDecoder(), request, httpx.Response(200), b"") == Empty()


def test_decode_response_empty_body_none_type() -> None:
    assert decode_response(JSONResponseDecoder(), make_request(), httpx.Response(204), b"") is None


def test_decode_response_empty_body_wrong_type() -> None:
    request = make_request(response_type=User)
    with pytest.raises(DecodingError, match="Empty response cannot be decoded"):
        decode_response(JSONResponseDecoder(), request, httpx.Response(204), b"")


def test_decode_response_empty_body_unexpected() -> None:
    request = make_request(response_type=Empty)
    with pytest.raises(DecodingError, match="Response data is empty"):
        decode_response(JSONResponseDecoder(), request, httpx.Response(200), b"")
