"""
Unit tests for the Foreman object model and value conversion helpers.
"""

import json
import random

import pytest

from foreman_client.api.core import (
    ForemanKVParameter,
    ForemanObject,
    QueryResponse,
    decode_json,
    foreman_object_array_to_id_array,
    from_kv,
    int_id_to_json_string,
    to_kv,
)
from foreman_client.exceptions import DecodeError


class TestIntIdToJSONString:
    """Test the request-body id encoding rule."""

    def test_zero_is_null(self):
        assert int_id_to_json_string(0) is None

    def test_negative_is_null(self):
        assert int_id_to_json_string(-5) is None
        assert int_id_to_json_string(-random.randint(1, 10**9)) is None

    def test_positive_is_quoted_string(self):
        assert int_id_to_json_string(42) == "42"
        value = random.randint(1, 10**9)
        assert int_id_to_json_string(value) == str(value)

    def test_json_encoding(self):
        payload = {"a": int_id_to_json_string(0), "b": int_id_to_json_string(42)}
        assert json.dumps(payload) == '{"a": null, "b": "42"}'


class TestObjectArrayToIdArray:
    """Test reducing nested objects to ids."""

    def test_empty(self):
        assert foreman_object_array_to_id_array([]) == []
        assert foreman_object_array_to_id_array(None) == []

    def test_records(self):
        objects = [ForemanObject(id=3, name="a"), ForemanObject(id=1, name="b")]
        assert foreman_object_array_to_id_array(objects) == [3, 1]

    def test_nested_json_objects(self):
        objects = [{"id": 5, "name": "x", "extra": True}, {"id": "9", "name": "y"}]
        assert foreman_object_array_to_id_array(objects) == [5, 9]

    def test_invalid_element(self):
        with pytest.raises(DecodeError):
            foreman_object_array_to_id_array([5])


class TestKVParameters:
    """Test parameter list conversions."""

    def test_from_kv(self):
        kv = [ForemanKVParameter("a", "1"), ForemanKVParameter("b", "2")]
        assert from_kv(kv) == {"a": "1", "b": "2"}

    def test_to_kv(self):
        assert to_kv({"a": "1", "b": 2}) == [
            ForemanKVParameter("a", "1"),
            ForemanKVParameter("b", "2"),
        ]


class TestForemanObject:
    """Test base record encoding and decoding."""

    def test_from_dict(self):
        obj = ForemanObject.from_dict(
            {"id": 12, "name": "n", "created_at": "c", "updated_at": "u", "other": 1}
        )
        assert obj == ForemanObject(id=12, name="n", created_at="c", updated_at="u")

    def test_from_dict_accepts_string_id(self):
        assert ForemanObject.from_dict({"id": "12"}).id == 12

    def test_from_dict_null_fields(self):
        obj = ForemanObject.from_dict({"id": None, "name": None})
        assert obj.id == 0
        assert obj.name == ""

    @pytest.mark.parametrize("data", [[], "x", 3, None])
    def test_from_dict_requires_object(self, data):
        with pytest.raises(DecodeError):
            ForemanObject.from_dict(data)

    @pytest.mark.parametrize("value", ["abc", True, [1], {"a": 1}, 1.5])
    def test_from_dict_invalid_id(self, value):
        with pytest.raises(DecodeError):
            ForemanObject.from_dict({"id": value})

    def test_payload_uses_id_rule(self):
        assert ForemanObject(id=0, name="new").to_payload() == {"id": None, "name": "new"}
        assert ForemanObject(id=4, name="old").to_payload() == {"id": "4", "name": "old"}

    def test_to_dict_keeps_numeric_id(self):
        assert ForemanObject(id=4, name="x").to_dict()["id"] == 4


class TestQueryResponse:
    """Test decoding the search response wrapper."""

    def test_from_dict(self):
        response = QueryResponse.from_dict({
            "total": 10,
            "subtotal": 2,
            "page": 1,
            "per_page": 20,
            "search": 'name="x"',
            "sort": {"by": "name", "order": "ASC"},
            "results": [{"id": 1}, {"id": 2}],
        })
        assert response.total == 10
        assert response.subtotal == 2
        assert response.per_page == 20
        assert response.sort.by == "name"
        assert response.sort.order == "ASC"
        assert response.results == [{"id": 1}, {"id": 2}]

    def test_null_fields(self):
        response = QueryResponse.from_dict({"search": None, "sort": None, "results": None})
        assert response.search == ""
        assert response.results == []

    def test_map_results_kept(self):
        response = QueryResponse.from_dict({"results": {"apache": [{"id": 1}]}})
        assert response.results == {"apache": [{"id": 1}]}

    def test_invalid_results(self):
        with pytest.raises(DecodeError):
            QueryResponse.from_dict({"results": "nope"})


class TestDecodeJSON:
    """Test response body decoding."""

    def test_empty_body_decodes_to_empty_object(self):
        assert decode_json(b"", dict) == {}
        assert decode_json(b"  ", ForemanObject) == ForemanObject()

    def test_empty_body_for_list_target(self):
        assert decode_json(b"", list) == []
        assert decode_json(b"\n", list) == []

    def test_list_target(self):
        assert decode_json(b"[1, 2]", list) == [1, 2]
        with pytest.raises(DecodeError):
            decode_json(b"{}", list)

    def test_invalid_utf8(self):
        with pytest.raises(DecodeError):
            decode_json(b"\xfa\xfb{}", dict)

    def test_unsupported_target(self):
        with pytest.raises(DecodeError):
            decode_json(b"{}", int)
