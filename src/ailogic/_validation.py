"""Checks shared by the request and response types.

Every failure is an ``InvalidArgumentError`` so malformed caller input always
carries a classified kind.
"""

from __future__ import annotations

from types import MappingProxyType
import typing

from ailogic.errors import InvalidArgumentError


def _read_only(
    m: typing.Mapping[str, typing.Any] | None,
) -> typing.Mapping[str, typing.Any]:
    """Snapshot *m* into a read-only view; ``None`` gives an empty one."""
    if isinstance(m, MappingProxyType):
        return m
    return MappingProxyType(dict(m or {}))


def _is_tuple_of(value: object, typ: type | tuple[type, ...]) -> bool:
    return isinstance(value, tuple) and all(isinstance(v, typ) for v in value)


def _require(*, condition: bool, message: str, field_name: str | None = None) -> None:
    """Raise ``InvalidArgumentError`` unless *condition* holds."""
    if condition:
        return
    raise InvalidArgumentError(f"{field_name}: {message}" if field_name else message)
