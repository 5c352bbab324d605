from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import httpx
import pytest

from arespec.request import (
    DataItem,
    FileItem,
    JsonEncoded,
    Multipart,
    PartialFileItem,
    QueryItem,
    RequestSpec,
    UrlEncoded,
    file_item,
    partial_file_item,
    string_item,
)
from arespec.result import Success


@dataclass
class Payload:
    name: str
    count: int


###############################
#     Tests for QueryItem     #
###############################


def test_query_item_default_value() -> None:
    assert QueryItem("flag") == QueryItem(name="flag", value=None)


#####################################
#     Tests for multipart items     #
#####################################


def test_string_item() -> None:
    assert string_item("YuAo", name="name") == DataItem(value=b"YuAo", name="name")


def test_string_item_utf8() -> None:
    assert string_item("é", name="key").value == "é".encode()


def test_file_item() -> None:
    assert file_item("/tmp/image.jpg", name="file") == FileItem(
        path=Path("/tmp/image.jpg"), name="file", filename="image.jpg", mime_type="image/jpeg"
    )


def test_file_item_unknown_extension() -> None:
    assert file_item("/tmp/blob", name="file").mime_type == "application/octet-stream"


def test_partial_file_item() -> None:
    assert partial_file_item("/tmp/video.mp4", offset=10, length=20, name="chunk") == (
        PartialFileItem(
            path=Path("/tmp/video.mp4"),
            offset=10,
            length=20,
            name="chunk",
            filename="video.mp4",
            mime_type="video/mp4",
        )
    )


################################
#     Tests for parameters     #
################################


def test_url_encoded_is_read_only() -> None:
    parameters = UrlEncoded({"id": 1})
    with pytest.raises(TypeError):
        parameters.values["id"] = 2  # type: ignore[index]


def test_url_encoded_copies_its_input() -> None:
    values = {"id": 1}
    parameters = UrlEncoded(values)
    values["id"] = 2
    assert parameters.values["id"] == 1


def test_url_encoded_equality_and_hash() -> None:
    assert UrlEncoded({"a": "1", "b": "2"}) == UrlEncoded({"b": "2", "a": "1"})
    assert hash(UrlEncoded({"a": "1"})) == hash(UrlEncoded({"a": "1"}))
    assert UrlEncoded({"a": None}) != UrlEncoded({})


def test_url_encoded_hash_with_list_values() -> None:
    assert hash(UrlEncoded({"ids": [1, 2]})) == hash(UrlEncoded({"ids": [1, 2]}))
    assert hash(UrlEncoded({"n": 1})) == hash(UrlEncoded({"n": 1.0}))
    assert UrlEncoded({"ids": [1, 2]}) != UrlEncoded({"ids": [2, 1]})


def test_url_encoded_repr() -> None:
    assert repr(UrlEncoded({"type": "0"})) == "UrlEncoded({'type': '0'})"


def test_multipart_converts_items_to_tuple() -> None:
    multipart = Multipart([string_item("1", name="id")])  # type: ignore[arg-type]
    assert multipart.items == (DataItem(value=b"1", name="id"),)


def test_json_encoded_mapping() -> None:
    assert JsonEncoded({"id": 1}).to_json_object() == {"id": 1}


def test_json_encoded_dataclass() -> None:
    assert JsonEncoded(Payload(name="YuAo", count=2)).to_json_object() == {
        "name": "YuAo",
        "count": 2,
    }


def test_json_encoded_structural_equality() -> None:
    assert JsonEncoded({"name": "YuAo", "count": 2}) == JsonEncoded(Payload(name="YuAo", count=2))
    assert hash(JsonEncoded({"a": 1, "b": 2})) == hash(JsonEncoded({"b": 2, "a": 1}))


@pytest.mark.parametrize("value", [[1, 2], "text", 3, Payload])
def test_json_encoded_rejects_non_objects(value: object) -> None:
    with pytest.raises(TypeError, match="mapping or a dataclass instance"):
        JsonEncoded(value)


#################################
#     Tests for RequestSpec     #
#################################


def test_request_spec_defaults() -> None:
    spec = RequestSpec(path="/users")
    assert spec.response_type is None
    assert spec.base_url is None
    assert spec.query_items == ()
    assert spec.method is None
    assert len(spec.headers) == 0
    assert spec.parameters == UrlEncoded()
    assert spec.timeout is None
    assert spec.mock is None


def test_request_spec_normalizes_values() -> None:
    spec = RequestSpec(
        path="/users",
        method="post",
        query_items=[("page", "2"), QueryItem("flag")],  # type: ignore[list-item]
        headers={"Cookie": "cookie=value"},  # type: ignore[arg-type]
    )
    assert spec.method == "POST"
    assert spec.query_items == (QueryItem("page", "2"), QueryItem("flag", None))
    assert spec.headers == (("Cookie", "cookie=value"),)


def test_request_spec_is_immutable() -> None:
    spec = RequestSpec(path="/users")
    with pytest.raises(AttributeError):
        spec.path = "/other"  # type: ignore[misc]


def test_request_spec_copies_headers() -> None:
    headers = httpx.Headers({"X-Token": "a"})
    source = {"X-Other": "o"}
    spec = RequestSpec(path="/", headers=headers)
    other = RequestSpec(path="/", headers=source)  # type: ignore[arg-type]
    headers["X-Token"] = "b"
    source["X-Other"] = "p"
    assert spec.headers == (("X-Token", "a"),)
    assert other.headers == (("X-Other", "o"),)


def test_request_spec_headers_keep_order_and_repeats() -> None:
    spec = RequestSpec(
        path="/",
        headers=[("X-Tag", "a"), ("Accept", "*/*"), ("X-Tag", "b")],  # type: ignore[arg-type]
    )
    assert spec.headers == (("X-Tag", "a"), ("Accept", "*/*"), ("X-Tag", "b"))


def test_request_spec_is_hashable_with_list_parameters() -> None:
    spec = RequestSpec(path="/", parameters=UrlEncoded({"ids": [1, 2]}))
    same = RequestSpec(path="/", parameters=UrlEncoded({"ids": [1, 2]}))
    assert spec == same
    assert hash(spec) == hash(same)


def test_request_spec_mock_is_ignored_by_equality() -> None:
    assert RequestSpec(path="/", mock=Success(1)) == RequestSpec(path="/")
