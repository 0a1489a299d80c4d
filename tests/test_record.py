"""Tests for remote secret records."""

from __future__ import annotations

import json

import pytest

from tcsecrets.errors import SecretFormatError, StoreOperationError
from tcsecrets.sync.backends import MemoryStore
from tcsecrets.sync.record import SecretRecord


class TestFromJson:
    """Tests for decoding record payloads."""

    def test_valid(self):
        record = SecretRecord.from_json('{"backend": "tok1", "web": "tok2"}', "app")
        assert record.secret_id == "app"
        assert record.field("backend") == "tok1"
        assert record.field_names() == {"backend", "web"}

    def test_empty_object(self):
        assert SecretRecord.from_json("{}").field_names() == set()

    def test_malformed(self):
        with pytest.raises(SecretFormatError, match="Secret JSON format error"):
            SecretRecord.from_json("{not json")

    @pytest.mark.parametrize("payload", ['["a", "b"]', '"text"', "42", "null"])
    def test_not_an_object(self, payload):
        with pytest.raises(SecretFormatError):
            SecretRecord.from_json(payload)

    def test_non_string_value(self):
        with pytest.raises(SecretFormatError, match="'count'"):
            SecretRecord.from_json('{"count": 3}')


class TestFields:
    """Tests for field access and mutation."""

    def test_missing_field(self):
        record = SecretRecord({"backend": "tok"})
        with pytest.raises(SecretFormatError, match="Field 'web' not found"):
            record.field("web")

    def test_has_field(self):
        record = SecretRecord({"backend": "tok"})
        assert record.has_field("backend")
        assert not record.has_field("web")

    def test_set_field_inserts_and_replaces(self):
        record = SecretRecord({"backend": "old"})
        record.set_field("backend", "new")
        record.set_field("web", "tok")
        assert record.fields == {"backend": "new", "web": "tok"}

    def test_constructor_copies(self):
        fields = {"backend": "tok"}
        record = SecretRecord(fields)
        record.set_field("web", "tok")
        assert fields == {"backend": "tok"}


class TestSerialize:
    """Tests for encoding and persisting records."""

    def test_serialize_parses_back(self):
        record = SecretRecord({"b": "2", "a": "1"})
        assert json.loads(record.serialize()) == {"a": "1", "b": "2"}

    def test_serialize_sorted(self):
        assert SecretRecord({"b": "2", "a": "1"}).serialize() == '{"a": "1", "b": "2"}'

    def test_load_and_save(self):
        store = MemoryStore({"app": '{"backend": "tok"}'})
        record = SecretRecord.load(store, "app")
        record.set_field("web", "tok2")
        record.save(store)
        assert json.loads(store.secrets["app"]) == {"backend": "tok", "web": "tok2"}

    def test_load_missing_secret(self):
        with pytest.raises(StoreOperationError):
            SecretRecord.load(MemoryStore(), "absent")

    def test_save_requires_secret_id(self):
        with pytest.raises(SecretFormatError, match="without a secret id"):
            SecretRecord({"a": "1"}).save(MemoryStore())
