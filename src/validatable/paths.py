"""Dotted property path resolution.

A path such as ``"Account.MinimumBalance"`` is walked left to right through
owned sub-objects. Reading never mutates anything.

- An absent (None) intermediate object yields UNRESOLVED.
- A segment that is not a property of the type being navigated raises
  PathResolutionError. That is a defect in the rule declaration, not a
  missing value, so it is never reported as UNRESOLVED.
"""

from __future__ import annotations

import inspect
import types
import typing
from collections.abc import Mapping
from functools import lru_cache
from typing import Any, ClassVar, Union, get_args, get_origin

from validatable.errors import PathResolutionError


class _Unresolved:
    """Sentinel for a path that runs through an absent sub-object."""

    _instance: ClassVar[_Unresolved | None] = None

    def __new__(cls) -> _Unresolved:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNRESOLVED"


UNRESOLVED = _Unresolved()


def split_path(path: str | tuple[str, ...]) -> tuple[str, ...]:
    """Split a dotted path into segments, rejecting empty segments."""
    segments = tuple(path) if isinstance(path, tuple) else tuple(path.split("."))
    if not segments or any(not s.strip() for s in segments):
        raise ValueError(f"Invalid property path: {path!r}")
    return tuple(s.strip() for s in segments)


@lru_cache(maxsize=None)
def declared_properties(cls: type) -> dict[str, Any]:
    """Return the public properties a class declares, with their annotations.

    Annotated attributes (dataclass fields included), ``property`` objects
    and plain non-callable class attributes are collected across the MRO.
    ClassVar annotations are skipped.
    """
    properties: dict[str, Any] = {}

    for klass in reversed(cls.__mro__):
        if klass is object:
            continue
        for name, value in vars(klass).items():
            if name.startswith("_"):
                continue
            if isinstance(value, property):
                hints = _safe_type_hints(value.fget) if value.fget else {}
                properties[name] = hints.get("return")
            elif _is_plain_attribute(value):
                properties.setdefault(name, None)

    for name, annotation in _safe_type_hints(cls).items():
        if name.startswith("_"):
            continue
        if annotation is ClassVar or get_origin(annotation) is ClassVar:
            properties.pop(name, None)
            continue
        properties[name] = annotation

    return properties


def _is_plain_attribute(value: Any) -> bool:
    """A class-level data value such as ``IsOpen = True`` (not a method)."""
    if isinstance(value, (staticmethod, classmethod, property)):
        return False
    return not callable(value)


def _safe_type_hints(obj: Any) -> dict[str, Any]:
    try:
        return typing.get_type_hints(obj)
    except Exception:
        # Unresolvable forward references: fall back to the raw annotations
        hints: dict[str, Any] = {}
        for klass in reversed(getattr(obj, "__mro__", (obj,))):
            hints.update(getattr(klass, "__annotations__", {}))
        return hints


def has_property(owner: Any, name: str) -> bool:
    """Check whether ``name`` is a property of the live object ``owner``."""
    if isinstance(owner, Mapping):
        return name in owner
    owner_type = type(owner)
    if name in declared_properties(owner_type):
        return True
    if name in getattr(owner, "__dict__", {}):
        return True
    if name in getattr(owner_type, "__slots__", ()):
        return True
    return isinstance(inspect.getattr_static(owner_type, name, None), property)


def _read(owner: Any, segment: str, path: str) -> Any:
    if not has_property(owner, segment):
        raise PathResolutionError(path, segment, type(owner))
    if isinstance(owner, Mapping):
        return owner[segment]
    return getattr(owner, segment, None)


def resolve(root: Any, path: str | tuple[str, ...]) -> Any:
    """Resolve ``path`` against ``root``.

    Returns:
        The value of the last segment (which may itself be None), or
        UNRESOLVED if the root or an intermediate sub-object is absent.

    Raises:
        PathResolutionError: If a segment is not a property of its owner
    """
    segments = split_path(path)
    dotted = ".".join(segments)
    current = root
    for segment in segments:
        if current is None or current is UNRESOLVED:
            return UNRESOLVED
        current = _read(current, segment, dotted)
    return current


def resolve_owner(root: Any, path: str | tuple[str, ...]) -> tuple[Any, str] | _Unresolved:
    """Resolve the object owning the last segment of ``path``.

    Returns:
        ``(owner, leaf_name)``, or UNRESOLVED if an intermediate is absent.

    Raises:
        PathResolutionError: If any segment is not a property of its owner
    """
    segments = split_path(path)
    owner = resolve(root, segments[:-1]) if len(segments) > 1 else root
    if owner is None or owner is UNRESOLVED:
        return UNRESOLVED
    leaf = segments[-1]
    if not has_property(owner, leaf):
        raise PathResolutionError(".".join(segments), leaf, type(owner))
    return owner, leaf


def _concrete_class(annotation: Any) -> type | None:
    """Unwrap ``X`` or ``X | None`` to a class; None when not statically known."""
    if annotation is Any:
        return None
    if isinstance(annotation, type) and get_origin(annotation) is None:
        return annotation
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        members = [a for a in get_args(annotation) if a is not type(None)]
        if len(members) == 1 and isinstance(members[0], type):
            return members[0]
    return None


def check_path(cls: type, path: str | tuple[str, ...]) -> None:
    """Statically validate ``path`` against the declared shape of ``cls``.

    Best effort: navigation stops silently at a class that declares no
    properties or at a segment whose annotation is not a concrete class
    (``Any``, unions, protocols). Such paths are checked at evaluation time.

    Raises:
        PathResolutionError: If a segment is missing from a declared shape
    """
    segments = split_path(path)
    current: type | None = cls
    for segment in segments:
        if current is None or issubclass(current, Mapping):
            return
        shape = declared_properties(current)
        if not shape:
            return
        if segment not in shape:
            raise PathResolutionError(".".join(segments), segment, current)
        current = _concrete_class(shape[segment])
