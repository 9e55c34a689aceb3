"""Format strings of error messages: shorthand expansion and rendering.

Messages use braces: ``{}`` takes the next positional argument, ``{0}`` a
positional argument or tuple field by index, ``{name}`` a keyword argument
or a named field.  A spec after a colon picks how the value is shown:
``?`` for debug, ``x``/``X``/``o``/``b`` for integers in other bases,
``e``/``E`` for exponent form and ``p`` for the object's address.  Fill,
alignment, width and precision are written as in Python format specs.

Extra arguments that are callables are called with a view of the fields,
where named fields are attributes and tuple fields are indexed.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal
from pathlib import PurePath
from typing import Any, Iterable, Mapping, Union

from .attr import DeriveError, Display, Trait
from .runtime import as_display

Member = Union[int, str]

_SPEC_TRAITS = frozenset("?oxXpbeE")
_SPEC_RE = re.compile(
    r"^(?:(?P<fill>.)?(?P<align>[<^>]))?(?P<sign>[+-])?(?P<alt>#)?"
    r"(?P<zero>0)?(?P<width>\d+)?(?:\.(?P<precision>\d+))?$",
    re.DOTALL,
)


@dataclass(frozen=True)
class _FieldRef:
    """A format argument that reads one field of the error."""

    member: Member
    bonus_display: bool = False


@dataclass(frozen=True, eq=False)
class _FieldView:
    """Read-only access to field values: ``view.name`` or ``view[0]``."""

    _values: Mapping[Member, Any]

    def __getattr__(self, name: str) -> Any:
        if name == "_values":
            raise AttributeError(name)
        try:
            return self._values[name]
        except KeyError:
            raise AttributeError(name) from None

    def __getitem__(self, member: Member) -> Any:
        return self._values[member]


def explicit_named_args(kwargs: Mapping[str, Any]) -> set[str]:
    """The names given explicitly as keyword arguments of a message."""
    return set(kwargs)


def _take_int(read: str) -> tuple[str, str]:
    for i, ch in enumerate(read):
        if ch not in "0123456789":
            return read[:i], read[i:]
    return read, read


def _take_ident(read: str) -> tuple[str, str]:
    prefix = ""
    if read.startswith("r#"):
        prefix = "r#"
        read = read[2:]
    for i, ch in enumerate(read):
        if not (ch.isascii() and (ch.isalnum() or ch == "_")):
            return prefix + read[:i], read[i:]
    return prefix + read, read


def expand_shorthand(display: Display, fields: Iterable[Any]) -> None:
    """Rewrite field references in ``display`` into keyword arguments.

    ``"error {var}"`` becomes ``"error {var}"`` with ``var`` bound to the
    field, and ``"{0}"`` becomes ``"{field__0}"`` bound to the first tuple
    field.  Records which fields are shown and how.  A malformed message is
    left unchanged.
    """
    named_args = explicit_named_args(display.kwargs)
    member_index = {field.member: i for i, field in enumerate(fields)}

    read = display.fmt
    out: list[str] = []
    kwargs = dict(display.kwargs)
    has_bonus_display = False
    implied_bounds: set[tuple[int, Trait]] = set()

    while (brace := read.find("{")) != -1:
        out.append(read[: brace + 1])
        read = read[brace + 1 :]
        if read.startswith("{"):
            out.append("{")
            read = read[1:]
            continue
        if not read:
            return
        first = read[0]
        member: Member
        if first in "0123456789":
            digits, read = _take_int(read)
            index = int(digits)
            if index > 0xFFFFFFFF:
                return
            member = index
            if member not in member_index:
                out.append(digits)
                continue
        elif first.isascii() and (first.isalpha() or first == "_"):
            member, read = _take_ident(read)
        else:
            continue

        if member in member_index:
            end_spec = read.find("}")
            if end_spec == -1:
                return
            spec = read[:end_spec]
            last = spec[-1] if spec else ""
            trait = Trait(last) if last in _SPEC_TRAITS else Trait.DISPLAY
            implied_bounds.add((member_index[member], trait))

        formatvar = f"_{member}" if isinstance(member, int) else member
        if formatvar.startswith("r#"):
            formatvar = "r_" + formatvar[2:]
        if formatvar.startswith("_"):
            formatvar = "field_" + formatvar
        out.append(formatvar)
        if formatvar in named_args:
            # Already given in the argument list.
            continue
        named_args.add(formatvar)
        if member in member_index:
            bonus = read.startswith("}")
            has_bonus_display = has_bonus_display or bonus
            kwargs[formatvar] = _FieldRef(member, bonus)

    out.append(read)
    display.fmt = "".join(out)
    display.kwargs = kwargs
    display.has_bonus_display = has_bonus_display
    display.implied_bounds = frozenset(implied_bounds)


def render(display: Display, values: Mapping[Member, Any]) -> str:
    """Produce the message of ``display`` for an error with field ``values``."""
    view = _FieldView(values)

    def resolve(arg: Any) -> Any:
        if isinstance(arg, _FieldRef):
            value = values[arg.member]
            return as_display(value) if arg.bonus_display else value
        if callable(arg):
            return arg(view)
        return arg

    positional = [resolve(arg) for arg in display.args]
    named = {name: resolve(arg) for name, arg in display.kwargs.items()}
    return _format(display.fmt, positional, named)


def _positional(positional: list, index: int) -> Any:
    if index >= len(positional):
        raise DeriveError(
            f"invalid reference to positional argument {index}"
            f" ({len(positional)} arguments given)"
        )
    return positional[index]


def _format(fmt: str, positional: list, named: Mapping[str, Any]) -> str:
    out: list[str] = []
    next_positional = 0
    i = 0
    while i < len(fmt):
        ch = fmt[i]
        if ch == "{":
            if fmt.startswith("{{", i):
                out.append("{")
                i += 2
                continue
            end = fmt.find("}", i)
            if end == -1:
                raise DeriveError(
                    "invalid format string: expected `}` but string was terminated"
                )
            name, _, spec = fmt[i + 1 : end].partition(":")
            name = name.strip()
            i = end + 1
            if not name:
                value = _positional(positional, next_positional)
                next_positional += 1
            elif name.isdigit():
                value = _positional(positional, int(name))
            elif name in named:
                value = named[name]
            else:
                raise DeriveError(f"cannot find value `{name}` in this scope")
            out.append(_format_value(value, spec))
        elif ch == "}":
            if fmt.startswith("}}", i):
                out.append("}")
                i += 2
                continue
            raise DeriveError("invalid format string: unmatched `}` found")
        else:
            out.append(ch)
            i += 1
    return "".join(out)


def _pad(text: str, parts: dict, default_align: str = "<") -> str:
    if parts["precision"] is not None:
        text = text[: int(parts["precision"])]
    if parts["width"] is None:
        return text
    fill = parts["fill"] or " "
    align = parts["align"] or default_align
    return format(text, f"{fill}{align}{parts['width']}")


def _number_spec(parts: dict, kind: str, precision: bool) -> str:
    fill_align = f"{parts['fill'] or ''}{parts['align']}" if parts["align"] else ""
    prec = f".{parts['precision']}" if precision and parts["precision"] else ""
    return (
        f"{fill_align}{parts['sign'] or ''}{parts['alt'] or ''}"
        f"{parts['zero'] or ''}{parts['width'] or ''}{prec}{kind}"
    )


def _format_value(value: Any, spec: str) -> str:
    trait = Trait.DISPLAY
    if spec and spec[-1] in _SPEC_TRAITS:
        trait = Trait(spec[-1])
        spec = spec[:-1]
    match = _SPEC_RE.match(spec)
    if match is None:
        raise DeriveError(f"invalid format spec `{spec}`")
    parts = match.groupdict()

    if trait is Trait.DISPLAY:
        if isinstance(value, int) and not isinstance(value, bool):
            return format(value, _number_spec(parts, "", False))
        if isinstance(value, float) and parts["precision"] is not None:
            return format(value, _number_spec(parts, "f", True))
        return _pad(_display(value), parts)
    if trait is Trait.DEBUG:
        return _pad(_debug(value), parts)
    if trait in (Trait.LOWER_HEX, Trait.UPPER_HEX, Trait.OCTAL, Trait.BINARY):
        if not isinstance(value, int):
            raise DeriveError(f"{type(value).__name__} cannot be formatted as {trait.name}")
        text = format(value, _number_spec(parts, trait.value, False))
        return text.replace("0X", "0x") if trait is Trait.UPPER_HEX else text
    if trait in (Trait.LOWER_EXP, Trait.UPPER_EXP):
        if not isinstance(value, (int, float)) or isinstance(value, bool):
            raise DeriveError(f"{type(value).__name__} cannot be formatted as {trait.name}")
        text = _rust_exp(value, parts["precision"])
        if trait is Trait.UPPER_EXP:
            text = text.upper()
        return _pad(text, {**parts, "precision": None}, ">")
    return _pad(hex(id(value)), parts, ">")


def _rust_exp(value: Union[int, float], precision: Any) -> str:
    if precision is not None:
        mantissa, exponent = format(float(value), f".{precision}e").split("e")
        return f"{mantissa}e{int(exponent)}"
    number = Decimal(value) if isinstance(value, int) else Decimal(repr(value))
    if not number.is_finite():
        return _display(value)
    sign, digits, exp = number.normalize().as_tuple()
    text = "".join(str(d) for d in digits)
    exponent = exp + len(digits) - 1
    mantissa = text[0] + ("." + text[1:] if len(text) > 1 else "")
    return f"{'-' if sign else ''}{mantissa}e{exponent}"


def _display_float(value: float) -> str:
    if value != value:
        return "NaN"
    if value in (float("inf"), float("-inf")):
        return "inf" if value > 0 else "-inf"
    return format(Decimal(repr(value)).normalize(), "f")


def _display(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return _display_float(value)
    return str(as_display(value))


def _escape(text: str) -> str:
    out = []
    for ch in text:
        if ch == '"':
            out.append('\\"')
        elif ch == "\\":
            out.append("\\\\")
        elif ch == "\n":
            out.append("\\n")
        elif ch == "\r":
            out.append("\\r")
        elif ch == "\t":
            out.append("\\t")
        elif ch == "\0":
            out.append("\\0")
        elif ord(ch) < 0x20 or ord(ch) == 0x7F:
            out.append(f"\\u{{{ord(ch):x}}}")
        else:
            out.append(ch)
    return '"' + "".join(out) + '"'


def _debug(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "None"
    if isinstance(value, str):
        return _escape(value)
    if isinstance(value, PurePath):
        return _escape(str(value))
    if isinstance(value, float):
        text = _display_float(value)
        if value == value and abs(value) != float("inf") and "." not in text:
            text += ".0"
        return text
    if isinstance(value, int):
        return str(value)
    if isinstance(value, list):
        return "[" + ", ".join(_debug(item) for item in value) + "]"
    if isinstance(value, tuple):
        inner = ", ".join(_debug(item) for item in value)
        return f"({inner},)" if len(value) == 1 else f"({inner})"
    if isinstance(value, dict):
        return "{" + ", ".join(f"{_debug(k)}: {_debug(v)}" for k, v in value.items()) + "}"
    if isinstance(value, (set, frozenset)):
        return "{" + ", ".join(_debug(item) for item in value) + "}"
    return repr(value)