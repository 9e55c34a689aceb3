"""Descriptions of error types: structs, enums, variants and their fields."""

from __future__ import annotations

import re
import types
import typing
from dataclasses import dataclass, replace
from typing import Any, Iterable, Optional, Union

from .attr import Attribute, Attrs, DeriveError, get
from .fmt import expand_shorthand

Member = Union[int, str]

_OPTION_RE = re.compile(r"^(?:[\w]+(?:\.|::))*(?:Option|Optional)\[(?P<arg>.*)\]$", re.DOTALL)
_BACKTRACE_RE = re.compile(r"^(?:[\w]+(?:\.|::))*Backtrace$")


def _split_top_level(text: str) -> list[str]:
    parts, depth, start = [], 0, 0
    for i, ch in enumerate(text):
        if ch in "[(<":
            depth += 1
        elif ch in "])>":
            depth -= 1
        elif ch == "," and depth == 0:
            parts.append(text[start:i])
            start = i + 1
    parts.append(text[start:])
    return parts


def _option_parameter(ty: Any) -> Any:
    """The type inside an optional type, or None if ``ty`` is not optional."""
    if isinstance(ty, str):
        match = _OPTION_RE.match(ty.strip())
        if match is None:
            return None
        args = _split_top_level(match.group("arg"))
        return args[0].strip() if len(args) == 1 else None
    origin = typing.get_origin(ty)
    if origin is Union or origin is types.UnionType:
        args = typing.get_args(ty)
        others = [arg for arg in args if arg is not type(None)]
        if len(args) == 2 and len(others) == 1:
            return others[0]
    return None


def _contains_generic(ty: Any) -> bool:
    if isinstance(ty, typing.TypeVar):
        return True
    return any(_contains_generic(arg) for arg in typing.get_args(ty))


@dataclass
class Field:
    """One field of a struct or variant."""

    original: Any
    attrs: Attrs
    member: Member
    ty: Any
    contains_generic: bool

    def is_backtrace(self) -> bool:
        """Whether the field's type is a plain ``Backtrace``."""
        if isinstance(self.ty, str):
            return _BACKTRACE_RE.match(self.ty.strip()) is not None
        return getattr(self.ty, "__name__", None) == "Backtrace" and not typing.get_args(self.ty)

    def is_option(self) -> bool:
        """Whether the field's type is optional."""
        return _option_parameter(self.ty) is not None


def _from_field(fields: list[Field]) -> Optional[Field]:
    return next((f for f in fields if f.attrs.from_ is not None), None)


def _source_field(fields: list[Field]) -> Optional[Field]:
    for field in fields:
        if field.attrs.from_ is not None or field.attrs.source is not None:
            return field
    return next((f for f in fields if f.member == "source"), None)


def _backtrace_field(fields: list[Field]) -> Optional[Field]:
    for field in fields:
        if field.attrs.backtrace is not None:
            return field
    return next((f for f in fields if f.is_backtrace()), None)


def _distinct_backtrace_field(
    backtrace: Optional[Field], from_field: Optional[Field]
) -> Optional[Field]:
    if backtrace is None:
        return None
    if from_field is not None and from_field.member == backtrace.member:
        return None
    return backtrace


@dataclass
class Variant:
    """One variant of an enum error."""

    original: Any
    attrs: Attrs
    ident: str
    fields: list[Field]

    def from_field(self) -> Optional[Field]:
        """The field marked ``from``, if any."""
        return _from_field(self.fields)

    def source_field(self) -> Optional[Field]:
        """The field marked ``source`` or ``from``, else one named ``source``."""
        return _source_field(self.fields)

    def backtrace_field(self) -> Optional[Field]:
        """The field marked ``backtrace``, else one of type ``Backtrace``."""
        return _backtrace_field(self.fields)

    def distinct_backtrace_field(self) -> Optional[Field]:
        """The backtrace field, unless it is also the ``from`` field."""
        return _distinct_backtrace_field(self.backtrace_field(), self.from_field())


@dataclass
class Struct:
    """An error type with a single shape."""

    original: Any
    attrs: Attrs
    ident: str
    fields: list[Field]

    def from_field(self) -> Optional[Field]:
        """The field marked ``from``, if any."""
        return _from_field(self.fields)

    def source_field(self) -> Optional[Field]:
        """The field marked ``source`` or ``from``, else one named ``source``."""
        return _source_field(self.fields)

    def backtrace_field(self) -> Optional[Field]:
        """The field marked ``backtrace``, else one of type ``Backtrace``."""
        return _backtrace_field(self.fields)

    def distinct_backtrace_field(self) -> Optional[Field]:
        """The backtrace field, unless it is also the ``from`` field."""
        return _distinct_backtrace_field(self.backtrace_field(), self.from_field())


@dataclass
class Enum:
    """An error type with several variants."""

    original: Any
    attrs: Attrs
    ident: str
    variants: list[Variant]

    def has_source(self) -> bool:
        """Whether any variant has a source or is transparent."""
        return any(
            v.source_field() is not None or v.attrs.transparent is not None
            for v in self.variants
        )

    def has_backtrace(self) -> bool:
        """Whether any variant has a backtrace field."""
        return any(v.backtrace_field() is not None for v in self.variants)

    def has_display(self) -> bool:
        """Whether a display message is to be generated."""
        return (
            self.attrs.display is not None
            or self.attrs.transparent is not None
            or any(v.attrs.display is not None for v in self.variants)
            or all(v.attrs.transparent is not None for v in self.variants)
        )


def _parse_fields(specs: Iterable[Any]) -> list[Field]:
    """Fields from ``(name, type)`` or ``(name, type, attributes)`` tuples.

    A name of None makes a tuple field, addressed by its position.
    """
    fields = []
    for i, spec in enumerate(specs):
        if not isinstance(spec, tuple) or len(spec) not in (2, 3):
            raise DeriveError("expected (name, type) or (name, type, attributes)", spec)
        name, ty = spec[0], spec[1]
        attributes: Iterable[Attribute] = spec[2] if len(spec) == 3 else ()
        fields.append(
            Field(
                original=spec,
                attrs=get(attributes),
                member=i if name is None else name,
                ty=ty,
                contains_generic=_contains_generic(ty),
            )
        )
    if len({isinstance(f.member, int) for f in fields}) > 1:
        raise DeriveError("fields must be either all named or all unnamed")
    return fields


def parse_struct(name: str, attributes: Iterable[Attribute], fields: Iterable[Any]) -> Struct:
    """Describe a struct error from its attributes and field specs."""
    attributes = list(attributes)
    attrs = get(attributes)
    parsed = _parse_fields(fields)
    if attrs.display is not None:
        expand_shorthand(attrs.display, parsed)
    return Struct(original=(name, attributes), attrs=attrs, ident=name, fields=parsed)


def _parse_variant(spec: Any) -> Variant:
    if isinstance(spec, str):
        spec = (spec,)
    if not isinstance(spec, tuple) or not 1 <= len(spec) <= 3:
        raise DeriveError("expected (name, attributes, fields)", spec)
    name = spec[0]
    attributes = spec[1] if len(spec) > 1 else ()
    fields = spec[2] if len(spec) > 2 else ()
    return Variant(
        original=spec, attrs=get(attributes), ident=name, fields=_parse_fields(fields)
    )


def parse_enum(name: str, attributes: Iterable[Attribute], variants: Iterable[Any]) -> Enum:
    """Describe an enum error; variants are ``(name, attributes, fields)`` tuples.

    Variants without a message inherit the enum's message or transparency.
    """
    attributes = list(attributes)
    attrs = get(attributes)
    parsed = []
    for spec in variants:
        variant = _parse_variant(spec)
        if variant.attrs.display is None and attrs.display is not None:
            variant.attrs.display = replace(attrs.display, kwargs=dict(attrs.display.kwargs))
        if variant.attrs.display is not None:
            expand_shorthand(variant.attrs.display, variant.fields)
        elif variant.attrs.transparent is None:
            variant.attrs.transparent = attrs.transparent
        parsed.append(variant)
    return Enum(original=(name, attributes), attrs=attrs, ident=name, variants=parsed)