"""Checks that a described error type can be derived."""

from __future__ import annotations

import re
from typing import Any, Optional, Union

from .ast import Enum, Field, Struct, Variant
from .attr import Attrs, DeriveError

_NON_STATIC_LIFETIME = re.compile(r"'(?!static\b)[A-Za-z_][A-Za-z0-9_]*")

Node = Union[Struct, Enum]


def validate(node: Node) -> Node:
    """Check a struct or enum description; return it unchanged if it is valid."""
    if isinstance(node, Struct):
        return validate_struct(node)
    if isinstance(node, Enum):
        return validate_enum(node)
    raise DeriveError("union as errors are not supported", node)


def validate_struct(node: Struct) -> Struct:
    """Check a struct description; return it unchanged if it is valid."""
    _check_non_field_attrs(node.attrs)
    if node.attrs.transparent is not None:
        if len(node.fields) != 1:
            raise DeriveError(
                "#[error(transparent)] requires exactly one field",
                node.attrs.transparent.original,
            )
        source = _first_source_attr(node.fields)
        if source is not None:
            raise DeriveError("transparent error struct can't contain #[source]", source)
    _check_field_attrs(node.fields)
    for field in node.fields:
        _validate_field(field)
    return node


def validate_enum(node: Enum) -> Enum:
    """Check an enum description; return it unchanged if it is valid."""
    _check_non_field_attrs(node.attrs)
    has_display = node.has_display()
    for variant in node.variants:
        _validate_variant(variant)
        if (
            has_display
            and variant.attrs.display is None
            and variant.attrs.transparent is None
        ):
            raise DeriveError('missing #[error("...")] display attribute', variant.original)

    from_types: set[str] = set()
    for variant in node.variants:
        from_field = variant.from_field()
        if from_field is None:
            continue
        key = _type_key(from_field.ty)
        if key in from_types:
            raise DeriveError(
                "cannot derive From because another variant has the same source type",
                from_field.original,
            )
        from_types.add(key)
    return node


def _validate_variant(variant: Variant) -> None:
    _check_non_field_attrs(variant.attrs)
    if variant.attrs.transparent is not None:
        if len(variant.fields) != 1:
            raise DeriveError(
                "#[error(transparent)] requires exactly one field", variant.original
            )
        source = _first_source_attr(variant.fields)
        if source is not None:
            raise DeriveError("transparent variant can't contain #[source]", source)
    _check_field_attrs(variant.fields)
    for field in variant.fields:
        _validate_field(field)


def _validate_field(field: Field) -> None:
    if field.attrs.display is not None:
        raise DeriveError(
            "not expected here; the #[error(...)] attribute belongs on top of "
            "a struct or an enum variant",
            field.attrs.display.original,
        )


def _first_source_attr(fields: list[Field]) -> Any:
    return next((f.attrs.source for f in fields if f.attrs.source is not None), None)


def _type_key(ty: Any) -> str:
    return ty.strip() if isinstance(ty, str) else repr(ty)


def _check_non_field_attrs(attrs: Attrs) -> None:
    if attrs.from_ is not None:
        raise DeriveError(
            "not expected here; the #[from] attribute belongs on a specific field",
            attrs.from_,
        )
    if attrs.source is not None:
        raise DeriveError(
            "not expected here; the #[source] attribute belongs on a specific field",
            attrs.source,
        )
    if attrs.backtrace is not None:
        raise DeriveError(
            "not expected here; the #[backtrace] attribute belongs on a specific field",
            attrs.backtrace,
        )
    if attrs.display is not None and attrs.transparent is not None:
        raise DeriveError(
            "cannot have both #[error(transparent)] and a display attribute",
            attrs.display.original,
        )


def _check_field_attrs(fields: list[Field]) -> None:
    from_field: Optional[Field] = None
    source_field: Optional[Field] = None
    backtrace_field: Optional[Field] = None
    has_backtrace = False
    for field in fields:
        attrs = field.attrs
        if attrs.from_ is not None:
            if from_field is not None:
                raise DeriveError("duplicate #[from] attribute", attrs.from_)
            from_field = field
        if attrs.source is not None:
            if source_field is not None:
                raise DeriveError("duplicate #[source] attribute", attrs.source)
            source_field = field
        if attrs.backtrace is not None:
            if backtrace_field is not None:
                raise DeriveError("duplicate #[backtrace] attribute", attrs.backtrace)
            backtrace_field = field
            has_backtrace = True
        if attrs.transparent is not None:
            raise DeriveError(
                "#[error(transparent)] needs to go outside the enum or struct, "
                "not on an individual field",
                attrs.transparent.original,
            )
        has_backtrace = has_backtrace or field.is_backtrace()

    if (
        from_field is not None
        and source_field is not None
        and from_field.member != source_field.member
    ):
        raise DeriveError(
            "#[from] is only supported on the source field, not any other field",
            from_field.attrs.from_,
        )

    if from_field is not None:
        if backtrace_field is not None:
            max_expected = 1 + (from_field.member != backtrace_field.member)
        else:
            max_expected = 1 + has_backtrace
        if len(fields) > max_expected:
            raise DeriveError(
                "deriving From requires no fields other than source and backtrace",
                from_field.attrs.from_,
            )

    source = source_field or from_field
    if source is not None and _contains_non_static_lifetime(source.ty):
        raise DeriveError(
            "non-static lifetimes are not allowed in the source of an error, because "
            "std::error::Error requires the source is dyn Error + 'static",
            source.original,
        )


def _contains_non_static_lifetime(ty: Any) -> bool:
    if not isinstance(ty, str):
        return False
    return _NON_STATIC_LIFETIME.search(ty) is not None