"""Shared argument checks for registry, policy and facade calls.

Every helper raises :class:`~dockfleet.core.errors.ValidationError`
synchronously; none of them touch a node.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from dockfleet.core.errors import ValidationError

NAME_PATTERN = re.compile(r"[A-Za-z0-9][A-Za-z0-9_.-]*")
TAG_PATTERN = NAME_PATTERN


def validate_node_name(name: Any, field: str = "name") -> str:
    """Check a node name against :data:`NAME_PATTERN`."""
    if not name:
        raise ValidationError.required(field)
    if not isinstance(name, str) or not NAME_PATTERN.fullmatch(name):
        raise ValidationError.invalid(
            field,
            name,
            "a valid node name (only letters, numbers, underscore, dot, and hyphen allowed)",
        )
    return name


def validate_tag(tag: Any) -> str:
    """Check a tag against :data:`TAG_PATTERN`."""
    if not tag:
        raise ValidationError.invalid("tag", tag, "non-empty string")
    if not isinstance(tag, str) or not TAG_PATTERN.fullmatch(tag):
        raise ValidationError.invalid(
            "tag",
            tag,
            "a valid tag name (only letters, numbers, underscore, dot, and hyphen allowed)",
        )
    return tag


def require(value: Any, field: str, message: str | None = None) -> None:
    """Reject empty values (``""``, ``None``, empty collections)."""
    if value is None or (isinstance(value, (str, bytes, list, tuple, dict, set)) and not value):
        raise ValidationError.required(field, message)


def require_bool(params: Mapping[str, Any], key: str, prefix: str = "parameters") -> None:
    """If ``key`` is present in ``params`` it must be a bool."""
    if key in params and not isinstance(params[key], bool):
        raise ValidationError.invalid(
            f"{prefix}.{key}",
            params[key],
            "boolean",
            f'Parameter "{key}" must be a boolean value',
        )


def require_mapping(value: Any, field: str) -> None:
    """Reject non-mapping values; ``None`` is allowed."""
    if value is not None and not isinstance(value, Mapping):
        raise ValidationError.invalid(field, value, "mapping", f"{field} must be a mapping")


__all__ = [
    "NAME_PATTERN",
    "TAG_PATTERN",
    "validate_node_name",
    "validate_tag",
    "require",
    "require_bool",
    "require_mapping",
]
