"""Tests for the loader module."""

import json

import pytest

from clientgen.errors import DocumentError, UnsupportedReferenceError
from clientgen.loader import deref, get_base_url, get_info, load_spec, resolve_local_ref

from conftest import make_spec


class TestLoadSpec:
    """Test reading JSON and YAML documents."""

    def test_default_example(self):
        spec = load_spec()
        assert "Users_getAll" in json.dumps(spec)

    def test_json(self, tmp_path):
        path = tmp_path / "api.json"
        path.write_text(json.dumps(make_spec()))
        assert load_spec(path)["info"]["title"] == "Test API"

    def test_yaml(self, tmp_path):
        path = tmp_path / "api.yaml"
        path.write_text(
            "openapi: 3.0.3\n"
            "info:\n"
            "  title: Yaml API\n"
            "  version: '2'\n"
            "paths: {}\n"
        )
        assert get_info(load_spec(path)) == ("Yaml API", "2")

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "api.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(DocumentError):
            load_spec(path)


class TestDocumentHelpers:
    """Test helpers reading the parsed tree."""

    def test_base_url_first_server(self):
        spec = make_spec(servers=[{"url": "https://a.example/v1/"}, {"url": "https://b"}])
        assert get_base_url(spec) == "https://a.example/v1"

    def test_base_url_missing(self):
        assert get_base_url(make_spec()) == ""

    def test_resolve_local_parameter_ref(self):
        spec = make_spec()
        spec["components"]["parameters"] = {"Limit": {"name": "limit", "in": "query"}}
        assert resolve_local_ref(spec, "#/components/parameters/Limit", "here")["name"] == "limit"

    def test_remote_ref_rejected(self):
        with pytest.raises(UnsupportedReferenceError):
            resolve_local_ref(make_spec(), "other.yaml#/components/parameters/Limit", "here")

    def test_missing_ref_rejected(self):
        with pytest.raises(UnsupportedReferenceError) as excinfo:
            resolve_local_ref(make_spec(), "#/components/responses/Missing", "operation 'x'")
        assert "operation 'x'" in str(excinfo.value)

    def test_deref_follows_chain(self):
        spec = make_spec()
        spec["components"]["responses"] = {
            "A": {"$ref": "#/components/responses/B"},
            "B": {"description": "final"},
        }
        assert deref(spec, {"$ref": "#/components/responses/A"}, "here") == {"description": "final"}

    def test_deref_cycle_rejected(self):
        spec = make_spec()
        spec["components"]["responses"] = {"A": {"$ref": "#/components/responses/A"}}
        with pytest.raises(UnsupportedReferenceError):
            deref(spec, {"$ref": "#/components/responses/A"}, "here")
