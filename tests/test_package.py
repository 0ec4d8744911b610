"""Tests for the top-level dockfleet package."""

import typing

import dockfleet
from dockfleet.client.protocol import ImageApi


def test_public_names_resolve():
    assert dockfleet.__version__ == "0.1.0"
    for name in dockfleet.__all__:
        assert hasattr(dockfleet, name), name


def test_protocol_annotations_resolve():
    # Resource APIs define a list() method; annotations must still see the builtin.
    hints = typing.get_type_hints(ImageApi.save)
    assert hints["names"] == str | list[str]
