"""Attributes attached to error types, variants and fields, and their parsing."""

from __future__ import annotations

import enum
import functools
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional


class DeriveError(Exception):
    """Raised when an error type cannot be derived from its description."""

    def __init__(self, message: str, node: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.node = node


@functools.total_ordering
class Trait(enum.Enum):
    """How a field is formatted; the value is the format spec suffix."""

    DEBUG = "?"
    DISPLAY = ""
    OCTAL = "o"
    LOWER_HEX = "x"
    UPPER_HEX = "X"
    POINTER = "p"
    BINARY = "b"
    LOWER_EXP = "e"
    UPPER_EXP = "E"

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Trait):
            return NotImplemented
        members = list(Trait)
        return members.index(self) < members.index(other)

    def __hash__(self) -> int:
        return hash(self.name)


class _TransparentKeyword:
    """Marker passed to :func:`error` to forward display and source."""

    _instance: Optional["_TransparentKeyword"] = None

    def __new__(cls) -> "_TransparentKeyword":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "transparent"


transparent = _TransparentKeyword()


@dataclass(frozen=True, eq=False)
class Attribute:
    """One attribute: a path, and arguments when written in list form.

    ``args`` of None means the bare path form, e.g. ``#[source]``.
    """

    path: str
    args: Optional[tuple] = None
    kwargs: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        args = self.args
        if args is None and self.kwargs:
            args = ()
        if args is not None:
            object.__setattr__(self, "args", tuple(args))
        object.__setattr__(self, "kwargs", dict(self.kwargs))

    def __repr__(self) -> str:
        if self.args is None:
            return f"#[{self.path}]"
        parts = [repr(arg) for arg in self.args]
        parts.extend(f"{key} = {value!r}" for key, value in self.kwargs.items())
        return f"#[{self.path}({', '.join(parts)})]"


source = Attribute("source")
backtrace = Attribute("backtrace")
from_ = Attribute("from")


def error(*args: Any, **kwargs: Any) -> Attribute:
    """Build an ``error`` attribute: a format string and its arguments, or ``transparent``."""
    return Attribute("error", args, kwargs)


@dataclass
class Display:
    """A display message: the format string and its extra arguments."""

    original: Attribute
    fmt: str
    args: tuple = ()
    kwargs: dict = field(default_factory=dict)
    has_bonus_display: bool = False
    implied_bounds: frozenset = frozenset()


@dataclass(frozen=True)
class Transparent:
    """Marks that display and source forward to the only field."""

    original: Attribute


@dataclass
class Attrs:
    """The recognised attributes found on one item."""

    display: Optional[Display] = None
    source: Optional[Attribute] = None
    backtrace: Optional[Attribute] = None
    from_: Optional[Attribute] = None
    transparent: Optional[Transparent] = None

    def span(self) -> Optional[Attribute]:
        """The attribute that locates this item: its display, else its transparent marker."""
        if self.display is not None:
            return self.display.original
        if self.transparent is not None:
            return self.transparent.original
        return None


def get(attributes: Iterable[Attribute]) -> Attrs:
    """Collect the recognised attributes, rejecting duplicates and malformed ones."""
    attrs = Attrs()
    for attr in attributes:
        if attr.path == "error":
            _parse_error_attribute(attrs, attr)
        elif attr.path == "source":
            _require_path_only(attr)
            if attrs.source is not None:
                raise DeriveError("duplicate #[source] attribute", attr)
            attrs.source = attr
        elif attr.path == "backtrace":
            _require_path_only(attr)
            if attrs.backtrace is not None:
                raise DeriveError("duplicate #[backtrace] attribute", attr)
            attrs.backtrace = attr
        elif attr.path == "from":
            if attr.args is not None:
                # Meant for some other derive; not ours.
                continue
            if attrs.from_ is not None:
                raise DeriveError("duplicate #[from] attribute", attr)
            attrs.from_ = attr
    return attrs


def _require_path_only(attr: Attribute) -> None:
    if attr.args is not None:
        raise DeriveError("unexpected token in attribute", attr)


def _parse_error_attribute(attrs: Attrs, attr: Attribute) -> None:
    if attr.args is None:
        raise DeriveError(
            "expected attribute arguments in parentheses: #[error(...)]", attr
        )
    args = attr.args
    kwargs = attr.kwargs

    if args and args[0] is transparent:
        if attrs.transparent is not None:
            raise DeriveError("duplicate #[error(transparent)] attribute", attr)
        if len(args) > 1 or kwargs:
            raise DeriveError("unexpected token", attr)
        attrs.transparent = Transparent(original=attr)
        return

    if not args:
        raise DeriveError("unexpected end of input, expected string literal", attr)
    fmt = args[0]
    if not isinstance(fmt, str):
        raise DeriveError("expected string literal", attr)

    display = Display(original=attr, fmt=fmt, args=tuple(args[1:]), kwargs=dict(kwargs))
    if attrs.display is not None:
        raise DeriveError("only one #[error(...)] attribute is allowed", attr)
    attrs.display = display