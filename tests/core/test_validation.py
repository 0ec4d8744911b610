"""Tests for dockfleet.core.validation."""

import pytest

from dockfleet.core.errors import ValidationError
from dockfleet.core.validation import (
    require,
    require_bool,
    require_mapping,
    validate_node_name,
    validate_tag,
)


class TestNames:

    @pytest.mark.parametrize("name", ["edge-1", "a", "node_2.eu", "9lives"])
    def test_valid_node_names(self, name):
        assert validate_node_name(name) == name

    @pytest.mark.parametrize("name", ["-edge", "edge 1", "edge/1", ".hidden", "edge\n", 42])
    def test_invalid_node_names(self, name):
        with pytest.raises(ValidationError) as exc_info:
            validate_node_name(name)
        assert exc_info.value.field == "name"

    @pytest.mark.parametrize("name", ["", None])
    def test_missing_node_name(self, name):
        with pytest.raises(ValidationError, match="is required"):
            validate_node_name(name, field="node_name")

    @pytest.mark.parametrize("tag", ["", None, "-prod", "prod eu", "a:b", "prod\n"])
    def test_invalid_tags(self, tag):
        with pytest.raises(ValidationError):
            validate_tag(tag)

    def test_valid_tag(self):
        assert validate_tag("eu-west_1") == "eu-west_1"


class TestRequire:

    @pytest.mark.parametrize("value", [None, "", [], (), {}, set(), b""])
    def test_empty_values(self, value):
        with pytest.raises(ValidationError):
            require(value, "field")

    @pytest.mark.parametrize("value", ["x", [1], 0, False])
    def test_present_values(self, value):
        require(value, "field")

    def test_require_bool(self):
        require_bool({"all": True}, "all")
        require_bool({}, "all")
        with pytest.raises(ValidationError, match='Parameter "all" must be a boolean value'):
            require_bool({"all": 1}, "all")

    def test_require_mapping(self):
        require_mapping(None, "filters")
        require_mapping({"a": 1}, "filters")
        with pytest.raises(ValidationError):
            require_mapping(["a"], "filters")
